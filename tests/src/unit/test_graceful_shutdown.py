"""Unit tests for entry point startup checks and graceful shutdown.

These tests verify that the server handles SIGTERM and SIGINT, closes the
Home Assistant client on the way out, and reports configuration and stdin
problems before starting.
"""

import asyncio
import signal
import stat as stat_module
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

import hass_mcp.__main__ as main_module


@pytest.fixture(autouse=True)
def reset_main_state():
    main_module._shutdown_in_progress = False
    main_module._shutdown_event = None
    main_module._server = None
    yield
    main_module._shutdown_in_progress = False
    main_module._shutdown_event = None
    main_module._server = None


class TestSignalHandlerSetup:
    """Tests for signal handler registration."""

    def test_registers_sigterm_and_sigint(self):
        with patch("signal.signal") as mock_signal:
            main_module._setup_signal_handlers()

        registered = {call[0][0]: call[0][1] for call in mock_signal.call_args_list}
        assert registered[signal.SIGTERM] is main_module._signal_handler
        assert registered[signal.SIGINT] is main_module._signal_handler


class TestSignalHandler:
    """Tests for the signal handler function."""

    def test_first_signal_schedules_event(self):
        """First signal should set the shutdown event on the running loop."""
        mock_event = MagicMock()
        main_module._shutdown_event = mock_event
        mock_loop = MagicMock()

        with patch("asyncio.get_running_loop", return_value=mock_loop):
            main_module._signal_handler(signal.SIGTERM, None)

        assert main_module._shutdown_in_progress is True
        mock_loop.call_soon_threadsafe.assert_called_once_with(mock_event.set)

    def test_second_signal_forces_exit(self):
        main_module._shutdown_in_progress = True

        with pytest.raises(SystemExit) as exc_info:
            main_module._signal_handler(signal.SIGINT, None)

        assert exc_info.value.code == 1

    def test_signal_without_event_loop_exits(self):
        main_module._shutdown_event = MagicMock()

        with patch("asyncio.get_running_loop", side_effect=RuntimeError("no running loop")):
            with pytest.raises(SystemExit) as exc_info:
                main_module._signal_handler(signal.SIGTERM, None)

        assert exc_info.value.code == 0


class TestCleanupResources:
    """Tests for resource cleanup."""

    @pytest.mark.asyncio
    async def test_cleanup_closes_server(self):
        mock_server = MagicMock()
        mock_server.close = AsyncMock()
        main_module._server = mock_server

        await main_module._cleanup_resources()

        mock_server.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleanup_without_server(self):
        await main_module._cleanup_resources()

    @pytest.mark.asyncio
    async def test_cleanup_logs_close_failure(self, caplog):
        mock_server = MagicMock()
        mock_server.close = AsyncMock(side_effect=RuntimeError("already closed"))
        main_module._server = mock_server

        await main_module._cleanup_resources()

        assert "Server cleanup failed: already closed" in caplog.text


class TestRunWithShutdown:
    """Integration tests for _run_with_shutdown."""

    @pytest.mark.asyncio
    async def test_shutdown_event_stops_server_and_cleans_up(self):
        server_cancelled = asyncio.Event()

        async def long_running_server():
            try:
                await asyncio.sleep(100)
            except asyncio.CancelledError:
                server_cancelled.set()
                raise

        with patch.object(main_module, "_cleanup_resources", new_callable=AsyncMock) as mock_cleanup:
            task = asyncio.create_task(main_module._run_with_shutdown(long_running_server()))
            await asyncio.sleep(0.05)
            main_module._shutdown_event.set()

            await asyncio.wait_for(task, timeout=3.0)

        assert server_cancelled.is_set()
        mock_cleanup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleanup_after_server_returns(self):
        async def short_server():
            return None

        with patch.object(main_module, "_cleanup_resources", new_callable=AsyncMock) as mock_cleanup:
            await asyncio.wait_for(main_module._run_with_shutdown(short_server()), timeout=3.0)

        mock_cleanup.assert_awaited_once()


class TestStdinDetection:
    """Tests for stdin availability detection."""

    @pytest.mark.parametrize(
        ("mode", "is_tty", "expected"),
        [
            (stat_module.S_IFCHR, True, True),
            (stat_module.S_IFIFO, False, True),
            (stat_module.S_IFREG, False, True),
            (stat_module.S_IFCHR, False, False),
        ],
        ids=["tty", "pipe", "regular-file", "dev-null"],
    )
    def test_stdin_modes(self, mode, is_tty, expected):
        with patch("sys.stdin") as mock_stdin:
            mock_stdin.closed = False
            mock_stdin.fileno.return_value = 0
            with patch("os.fstat", return_value=MagicMock(st_mode=mode)):
                with patch("os.isatty", return_value=is_tty):
                    assert main_module._check_stdin_available() is expected

    def test_stdin_closed(self):
        with patch("sys.stdin") as mock_stdin:
            mock_stdin.closed = True
            assert main_module._check_stdin_available() is False

    def test_stdin_none(self):
        with patch("sys.stdin", None):
            assert main_module._check_stdin_available() is False

    def test_fileno_raises(self):
        with patch("sys.stdin") as mock_stdin:
            mock_stdin.closed = False
            mock_stdin.fileno.side_effect = ValueError("no fileno")
            assert main_module._check_stdin_available() is False

    def test_main_exits_when_stdin_not_available(self):
        settings = MagicMock(debug=False, log_level="INFO")

        with patch.object(sys, "argv", ["hass-mcp"]):
            with patch.object(main_module, "_load_settings", return_value=settings):
                with patch.object(main_module, "_check_stdin_available", return_value=False):
                    with pytest.raises(SystemExit) as exc_info:
                        main_module.main()

        assert exc_info.value.code == 1


class TestConfigErrors:
    """Tests for the configuration error banner."""

    def _missing_settings_error(self, monkeypatch, tmp_path):
        from hass_mcp.config import Settings

        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("HOMEASSISTANT_URL", raising=False)
        monkeypatch.delenv("HOMEASSISTANT_TOKEN", raising=False)
        with pytest.raises(ValidationError) as exc_info:
            Settings()
        return exc_info.value

    def test_missing_variables_are_listed(self, monkeypatch, tmp_path, capsys):
        error = self._missing_settings_error(monkeypatch, tmp_path)

        with pytest.raises(SystemExit) as exc_info:
            main_module._handle_config_error(error)

        assert exc_info.value.code == 1
        stderr = capsys.readouterr().err
        assert "  - HOMEASSISTANT_URL" in stderr
        assert "  - HOMEASSISTANT_TOKEN" in stderr

    def test_other_errors_are_printed(self, capsys):
        with pytest.raises(SystemExit):
            main_module._handle_config_error(ValueError("bad url"))

        assert "bad url" in capsys.readouterr().err


class TestHttpRuntime:
    """Tests for HTTP transport settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MCP_PORT", raising=False)
        monkeypatch.delenv("MCP_SECRET_PATH", raising=False)

        assert main_module._get_http_runtime(8086) == (8086, "/mcp")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "9000")
        monkeypatch.setenv("MCP_SECRET_PATH", "/private_abc")

        assert main_module._get_http_runtime(8087) == (9000, "/private_abc")

    def test_invalid_port_exits(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "eighty")

        with pytest.raises(SystemExit) as exc_info:
            main_module._get_http_runtime(8086)

        assert exc_info.value.code == 1

    def test_uvicorn_log_config_has_timestamps(self):
        log_config = main_module._get_timestamped_uvicorn_log_config()
        assert log_config["formatters"]["default"]["fmt"].startswith("%(asctime)s")

    def test_debug_overrides_log_level(self):
        with patch("logging.basicConfig") as mock_basic_config:
            main_module._setup_logging(MagicMock(debug=True, log_level="WARNING"))

        assert mock_basic_config.call_args.kwargs["level"] == 10
