"""Unit tests for logging configuration."""

import io
import logging

from rich.console import Console
from rich.logging import RichHandler

from netgear_acl.logging_config import InterceptHandler, configure_logging, remove_file_sink


def _console():
    return Console(file=io.StringIO(), width=200)


class TestConfigureLogging:
    """Test configure_logging."""

    def test_handlers_installed(self, tmp_path):
        configure_logging(str(tmp_path / 'logs' / 'acl.log'), console=_console())

        package_logger = logging.getLogger('netgear_acl')
        handler_types = {type(h) for h in package_logger.handlers}
        assert handler_types == {RichHandler, InterceptHandler}
        assert package_logger.propagate is False
        assert package_logger.level == logging.INFO

    def test_warnings_reach_file(self, tmp_path):
        log_file = tmp_path / 'logs' / 'acl.log'
        configure_logging(str(log_file), console=_console())

        log = logging.getLogger('netgear_acl.page_client')
        log.info('fetched page')
        log.warning('device skipped')
        remove_file_sink()

        content = log_file.read_text()
        assert 'device skipped' in content
        assert 'WARNING' in content
        assert 'netgear_acl.page_client' in content
        assert 'fetched page' not in content

    def test_errors_reach_file(self, tmp_path):
        log_file = tmp_path / 'acl.log'
        configure_logging(str(log_file), console=_console())

        logging.getLogger('netgear_acl.orchestrator').error('postback failed')
        remove_file_sink()

        assert 'ERROR | netgear_acl.orchestrator | postback failed' in log_file.read_text()

    def test_console_output(self, tmp_path):
        console = _console()
        configure_logging(str(tmp_path / 'acl.log'), console=console)

        logging.getLogger('netgear_acl.orchestrator').info('already Blocked')

        assert 'already Blocked' in console.file.getvalue()

    def test_debug_level(self, tmp_path):
        configure_logging(str(tmp_path / 'acl.log'), debug=True, console=_console())
        assert logging.getLogger('netgear_acl').level == logging.DEBUG

    def test_reconfigure_replaces_handlers(self, tmp_path):
        configure_logging(str(tmp_path / 'a.log'), console=_console())
        configure_logging(str(tmp_path / 'b.log'), console=_console())
        assert len(logging.getLogger('netgear_acl').handlers) == 2

    def test_reconfigure_moves_file(self, tmp_path):
        configure_logging(str(tmp_path / 'a.log'), console=_console())
        configure_logging(str(tmp_path / 'b.log'), console=_console())

        logging.getLogger('netgear_acl').warning('after move')
        remove_file_sink()

        assert 'after move' in (tmp_path / 'b.log').read_text()
        assert 'after move' not in (tmp_path / 'a.log').read_text()

    def test_remove_file_sink_twice(self, tmp_path):
        configure_logging(str(tmp_path / 'acl.log'), console=_console())
        remove_file_sink()
        remove_file_sink()
