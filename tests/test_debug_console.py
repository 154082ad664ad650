"""Tests for file logging setup and the mirroring console."""
import io
import logging

import pytest

from utils.debug_console import DebugCapturingConsole, create_debug_console, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    def test_writes_to_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "cli.log"
        setup_logging(debug=False, log_file=str(log_file))

        logging.getLogger("graph_oauth.session").info("[AUTH] Login state: Idle")
        logging.getLogger("graph_oauth.session").debug("hidden")

        content = log_file.read_text()
        assert "[AUTH] Login state: Idle" in content
        assert "hidden" not in content

    def test_debug_level(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "cli.log"
        setup_logging(debug=True, log_file=str(log_file))

        logging.getLogger("runner.worker").debug("verbose detail")

        assert "verbose detail" in log_file.read_text()


class TestDebugConsole:
    def test_plain_console_without_debug(self):
        assert not isinstance(create_debug_console(False, logging.getLogger("x")), DebugCapturingConsole)

    def test_mirrors_output_without_markup(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "cli.log"
        debug_logger = setup_logging(debug=True, log_file=str(log_file))
        console = create_debug_console(True, debug_logger)
        console.file = io.StringIO()

        console.print("[green]✓ Login successful![/green]")

        content = log_file.read_text(encoding="utf-8")
        assert "[CONSOLE] ✓ Login successful!" in content
        assert "[green]" not in content

    def test_no_mirror_below_debug_level(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "cli.log"
        debug_logger = setup_logging(debug=False, log_file=str(log_file))
        console = DebugCapturingConsole(debug_logger=debug_logger, file=io.StringIO())

        console.print("Session status: CONNECTED")

        assert "Session status" in console.file.getvalue()
        assert "[CONSOLE]" not in log_file.read_text(encoding="utf-8")
