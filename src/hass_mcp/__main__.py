"""Home Assistant MCP Server entry points."""

import truststore

truststore.inject_into_ssl()

import asyncio  # noqa: E402
import copy  # noqa: E402
import logging  # noqa: E402
import os  # noqa: E402
import signal  # noqa: E402
import stat  # noqa: E402
import sys  # noqa: E402
from typing import Any  # noqa: E402

logger = logging.getLogger(__name__)

# Shutdown configuration
SHUTDOWN_TIMEOUT_SECONDS = 2.0

# Global shutdown state
_shutdown_event: asyncio.Event | None = None
_shutdown_in_progress = False

_STDIN_ERROR_MESSAGE = """
==============================================================================
                    Home Assistant MCP Server - Stdin Not Available
==============================================================================

The MCP server requires an interactive stdin for stdio transport mode.

This typically happens when running in a container without an attached stdin
(for example `docker run` without the -i flag).

Either attach stdin, or use the HTTP transport instead:
  hass-mcp-web

==============================================================================
"""

_CONFIG_ERROR_MESSAGE = """
==============================================================================
                    Home Assistant MCP Server - Configuration Error
==============================================================================

Missing required environment variables:
{missing_vars}

To fix this, provide your Home Assistant connection details:

  1. HOMEASSISTANT_URL - Your Home Assistant instance URL
     Example: http://homeassistant.local:8123

  2. HOMEASSISTANT_TOKEN - A long-lived access token
     Get one from: Home Assistant -> Profile -> Long-Lived Access Tokens

Set them as environment variables or in a .env file in the project directory.

==============================================================================
"""

_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _check_stdin_available() -> bool:
    """Check if stdin is available for reading.

    Returns False if stdin is closed or is a non-TTY character device such as
    /dev/null, which immediately returns EOF and ends the stdio transport.
    """
    if sys.stdin is None or sys.stdin.closed:
        return False

    try:
        fd = sys.stdin.fileno()
        mode = os.fstat(fd).st_mode
    except (ValueError, OSError):
        return False

    # TTYs, pipes (how MCP clients communicate), and regular files (testing)
    if os.isatty(fd) or stat.S_ISFIFO(mode) or stat.S_ISREG(mode):
        return True

    if stat.S_ISCHR(mode):
        return False

    return True


def _handle_config_error(error: Exception) -> None:
    """Print a user-friendly configuration error and exit(1)."""
    from pydantic import ValidationError

    if isinstance(error, ValidationError):
        missing_vars = []
        for err in error.errors():
            if err.get("type") == "missing":
                # The field name is the alias (env var name)
                field_loc = err.get("loc", ())
                if field_loc:
                    missing_vars.append(f"  - {field_loc[0]}")

        if missing_vars:
            print(
                _CONFIG_ERROR_MESSAGE.format(missing_vars="\n".join(missing_vars)),
                file=sys.stderr,
            )
            sys.exit(1)

    print(
        f"""
==============================================================================
                    Home Assistant MCP Server - Configuration Error
==============================================================================

{error}

==============================================================================
""",
        file=sys.stderr,
    )
    sys.exit(1)


def _load_settings():
    """Load settings, exiting with a readable message when they are invalid."""
    from pydantic import ValidationError

    from hass_mcp.config import get_global_settings

    try:
        return get_global_settings()
    except ValidationError as e:
        _handle_config_error(e)
        raise  # _handle_config_error calls sys.exit


def _setup_logging(settings) -> None:
    """Configure root logger with consistent timestamp format (DEBUG overrides LOG_LEVEL)."""
    log_level_str = "DEBUG" if settings.debug else settings.log_level
    logging.basicConfig(
        level=getattr(logging, log_level_str),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt=_LOG_DATE_FORMAT,
    )


def _get_timestamped_uvicorn_log_config() -> dict:
    """Return a Uvicorn log config with human-readable timestamps added."""
    from uvicorn.config import LOGGING_CONFIG

    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s %(levelprefix)s %(message)s"
    log_config["formatters"]["default"]["datefmt"] = _LOG_DATE_FORMAT
    log_config["formatters"]["access"]["fmt"] = (
        '%(asctime)s %(levelprefix)s %(client_addr)s - "%(request_line)s" %(status_code)s'
    )
    log_config["formatters"]["access"]["datefmt"] = _LOG_DATE_FORMAT
    return log_config


# Lazy server creation - only create when needed
_server = None


def _get_server():
    """Get the server instance, creating it on first use."""
    global _server
    if _server is None:
        from hass_mcp.server import HomeAssistantMCPServer

        _server = HomeAssistantMCPServer(settings=_load_settings())
    return _server


async def _cleanup_resources() -> None:
    """Close the server's HTTP client."""
    if _server is None:
        return

    logger.info("Cleaning up server resources...")
    try:
        await _server.close()
    except Exception as e:
        logger.warning(f"Server cleanup failed: {e}")
    logger.info("Server resources cleaned up")


async def _cancel_tasks(*tasks: asyncio.Task) -> None:
    """Cancel tasks and wait for completion, swallowing CancelledError."""
    for task in tasks:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


async def _run_with_shutdown(server_coro) -> None:
    """Run a server coroutine until it finishes or a shutdown signal arrives."""
    global _shutdown_event

    _shutdown_event = asyncio.Event()

    server_task = asyncio.create_task(server_coro)
    shutdown_task = asyncio.create_task(_shutdown_event.wait())

    try:
        done, _pending = await asyncio.wait(
            [server_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        if shutdown_task in done:
            logger.info("Shutdown signal received, stopping server...")
            server_task.cancel()
            try:
                await asyncio.wait_for(server_task, timeout=SHUTDOWN_TIMEOUT_SECONDS)
            except TimeoutError:
                logger.warning("Server did not stop within timeout")
            except asyncio.CancelledError:
                pass

    except asyncio.CancelledError:
        logger.info("Server task cancelled")
    finally:
        try:
            await asyncio.wait_for(_cleanup_resources(), timeout=SHUTDOWN_TIMEOUT_SECONDS)
        except TimeoutError:
            logger.warning("Resource cleanup timed out")

        await _cancel_tasks(server_task, shutdown_task)


def _signal_handler(signum: int, frame: Any) -> None:
    """Start graceful shutdown on the first signal, force exit on the second."""
    global _shutdown_in_progress

    sig_name = signal.Signals(signum).name

    if _shutdown_in_progress:
        logger.warning(f"Received {sig_name} again, forcing exit")
        sys.exit(1)

    _shutdown_in_progress = True
    logger.info(f"Received {sig_name}, initiating graceful shutdown...")

    if _shutdown_event is not None:
        try:
            loop = asyncio.get_running_loop()
            loop.call_soon_threadsafe(_shutdown_event.set)
        except RuntimeError:
            sys.exit(0)


def _setup_signal_handlers() -> None:
    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)


def _run_entrypoint(coro, label: str) -> None:
    """Run an async entrypoint with standard exception handling."""
    _setup_signal_handlers()

    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    except SystemExit:
        raise
    except Exception as e:
        logger.error(f"{label} error: {e}")
        sys.exit(1)

    sys.exit(0)


def _get_show_banner() -> bool:
    """Respect FASTMCP_SHOW_CLI_BANNER."""
    import fastmcp

    return fastmcp.settings.show_cli_banner


def _get_http_runtime(default_port: int) -> tuple[int, str]:
    """Return (port, path) for HTTP transports from MCP_PORT / MCP_SECRET_PATH."""
    port_str = os.getenv("MCP_PORT", str(default_port))
    try:
        port = int(port_str)
    except ValueError:
        logger.error(f"Invalid MCP_PORT value: {port_str!r}. Must be an integer.")
        sys.exit(1)
    path = os.getenv("MCP_SECRET_PATH", "/mcp")
    return port, path


def _http_run_kwargs(transport: str, port: int, path: str) -> dict:
    """Build run_async kwargs for HTTP-based transports."""
    return {
        "transport": transport,
        "host": "0.0.0.0",
        "port": port,
        "path": path,
        "show_banner": _get_show_banner(),
        "uvicorn_config": {"log_config": _get_timestamped_uvicorn_log_config()},
    }


def _print_version_and_exit() -> None:
    from importlib.metadata import version

    print(f"hass-mcp {version('hass-mcp')}")
    sys.exit(0)


def main() -> None:
    """Run the server over stdio."""
    if "--version" in sys.argv or "-V" in sys.argv:
        _print_version_and_exit()

    # Config errors are reported before stdin problems
    settings = _load_settings()

    if not _check_stdin_available():
        print(_STDIN_ERROR_MESSAGE, file=sys.stderr)
        sys.exit(1)

    _setup_logging(settings)
    mcp = _get_server().mcp
    _run_entrypoint(
        _run_with_shutdown(mcp.run_async(show_banner=_get_show_banner())),
        "Server",
    )


def _run_http_server(transport: str, default_port: int) -> None:
    settings = _load_settings()
    _setup_logging(settings)

    port, path = _get_http_runtime(default_port)
    mcp = _get_server().mcp
    _run_entrypoint(
        _run_with_shutdown(mcp.run_async(**_http_run_kwargs(transport, port, path))),
        "HTTP server",
    )


def main_web() -> None:
    """Run the server over streamable HTTP.

    Environment:
    - HOMEASSISTANT_URL (required)
    - HOMEASSISTANT_TOKEN (required)
    - MCP_PORT (optional, default: 8086)
    - MCP_SECRET_PATH (optional, default: "/mcp")
    """
    _run_http_server("streamable-http", default_port=8086)


def main_sse() -> None:
    """Run the server using the Server-Sent Events transport (default port 8087)."""
    _run_http_server("sse", default_port=8087)


if __name__ == "__main__":
    main()
