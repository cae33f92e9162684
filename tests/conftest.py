"""Shared fixtures: sample router pages, a recording fake transport and a fake clock."""

import logging

import pytest

from fakes import (
    ADD_PAGE,
    ADD_PAGE_URL,
    BASE_URL,
    BLACKLIST,
    DEVICE_LIST_URL,
    ONLINE_DEVICES,
    WHITELIST,
    FakeClock,
    FakeHttpClient,
    build_page,
)
from netgear_acl.api_cache import TimedCache
from netgear_acl.auth import StaticCredentialProvider
from netgear_acl.endpoint_builder import RouterEndpointBuilder
from netgear_acl.logging_config import remove_file_sink
from netgear_acl.page_client import RouterPageClient


@pytest.fixture
def sample_page() -> str:
    """Access control page with three online, one allowed and one blocked device."""
    return build_page(online=ONLINE_DEVICES, white=WHITELIST, black=BLACKLIST)


@pytest.fixture
def fake_http(sample_page) -> FakeHttpClient:
    return FakeHttpClient({DEVICE_LIST_URL: sample_page, ADD_PAGE_URL: ADD_PAGE})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider('admin', 'password123')  # pragma: allowlist secret


@pytest.fixture
def page_client(fake_http, credentials, clock) -> RouterPageClient:
    return RouterPageClient(
        endpoint_builder=RouterEndpointBuilder(BASE_URL),
        http_client=fake_http,
        credential_provider=credentials,
        cache=TimedCache(clock=clock),
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger('netgear_acl')
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
    remove_file_sink()
