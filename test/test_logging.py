"""
Tests for logging setup.
"""

import logging

import pytest

from evmscope.config import Settings
from evmscope.utils.logging import (
    LIBRARY_LOGGERS,
    TRACE,
    get_logger,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_loggers():
    root = logging.getLogger('evmscope')
    saved = (root.level, list(root.handlers), root.propagate)
    library_levels = {name: logging.getLogger(name).level for name in LIBRARY_LOGGERS}
    yield
    for handler in root.handlers:
        if handler not in saved[1]:
            handler.close()
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    root.propagate = saved[2]
    for name, level in library_levels.items():
        logging.getLogger(name).setLevel(level)


class TestResolveLevel:

    def test_base_level(self):
        assert resolve_level(Settings(), logging.INFO) == logging.INFO

    def test_debug_setting(self):
        assert resolve_level(Settings(debug=True), logging.INFO) == logging.DEBUG

    def test_verbose_wins(self):
        assert resolve_level(Settings(debug=True), verbose=True) == TRACE


class TestSetupLogging:

    def test_console_goes_to_stderr(self, capsys):
        setup_logging(Settings(), base_level=logging.INFO, use_colors=False)
        get_logger('rpc').info("connected")
        captured = capsys.readouterr()
        assert captured.out == ''
        assert 'INFO: connected' in captured.err

    def test_quiet_without_file_has_no_handlers(self):
        logger = setup_logging(Settings(), quiet=True)
        assert logger.handlers == []

    def test_log_file_from_settings_gets_trace(self, tmp_path):
        log_file = tmp_path / 'evmscope.log'
        logger = setup_logging(Settings(log_file=str(log_file)), quiet=True)
        get_logger('rpc').trace("eth_chainId -> 0x1")
        for handler in logger.handlers:
            handler.flush()
        assert 'evmscope.rpc TRACE eth_chainId -> 0x1' in log_file.read_text()

    def test_library_loggers_are_held_at_warning(self):
        setup_logging(Settings(), quiet=True)
        assert all(logging.getLogger(name).level == logging.WARNING for name in LIBRARY_LOGGERS)

    def test_verbose_lets_library_loggers_through(self):
        setup_logging(Settings(), quiet=True, verbose=True)
        assert logging.getLogger('mcp').level == logging.DEBUG
