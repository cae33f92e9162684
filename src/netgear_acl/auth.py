"""Router credentials and the providers that supply them."""

from pydantic import BaseModel, Field
from typing import Protocol

from .config import RouterConfig
from .exceptions import NotAuthenticatedError


class Credentials(BaseModel):
    """Router admin credentials (HTTP Basic auth)."""

    username: str = Field(description='Admin username')
    password: str = Field(description='Admin password', repr=False)


class CredentialProvider(Protocol):
    """Supplies credentials for an authenticated page fetch."""

    def get(self) -> Credentials:
        ...


class StaticCredentialProvider:
    """Returns credentials fixed at construction time."""

    def __init__(self, username: str | None, password: str | None):
        self._username = username
        self._password = password

    def get(self) -> Credentials:
        """Return the credentials.

        Raises:
            NotAuthenticatedError: If username or password is missing
        """
        if not self._username or self._password is None:
            raise NotAuthenticatedError(
                'No router credentials configured. '
                'Set NETGEAR_USERNAME and NETGEAR_PASSWORD.'
            )
        return Credentials(username=self._username, password=self._password)


class ConfigCredentialProvider(StaticCredentialProvider):
    """Takes credentials from a RouterConfig."""

    def __init__(self, config: RouterConfig):
        super().__init__(config.username, config.password)
