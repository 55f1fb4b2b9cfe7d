"""
Tools registry - discovers and registers every tools_*.py module.

Adding a new tools module:
1. Create tools_*.py with a register_*_tools(mcp, client, **kwargs) function
2. It is picked up automatically; no changes to this file are needed

Tool filtering:
Set ENABLED_TOOL_MODULES to choose which modules are loaded:
- "all" (default): Load all tools
- "readonly": Everything except modules that change Home Assistant state
- Comma-separated list: Load specific modules (e.g., "tools_entities,tools_system")
"""

import importlib
import logging
import pkgutil
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

PACKAGE = "hass_mcp.tools"

# Modules that call services and therefore change state
WRITE_MODULES = {"tools_automations", "tools_service"}


class ToolsRegistry:
    """Manages registration of all MCP tools for the server."""

    def __init__(self, server: Any, enabled_modules: str = "all") -> None:
        self.server = server
        self.client = server.client
        self.mcp = server.mcp
        self._enabled_modules = enabled_modules
        self._modules_registered = False
        self._discovered_modules = self._discover_tool_modules()

    @property
    def discovered_modules(self) -> list[str]:
        return list(self._discovered_modules)

    def _is_enabled(self, module_name: str) -> bool:
        setting = self._enabled_modules.strip().lower()
        if setting == "all":
            return True
        if setting == "readonly":
            return module_name not in WRITE_MODULES
        enabled = {m.strip() for m in setting.split(",") if m.strip()}
        return not enabled or module_name in enabled

    def _discover_tool_modules(self) -> list[str]:
        """Discover tool module names without importing them."""
        package_path = Path(__file__).parent
        discovered = sorted(
            module_info.name
            for module_info in pkgutil.iter_modules([str(package_path)])
            if module_info.name.startswith("tools_") and self._is_enabled(module_info.name)
        )

        if self._enabled_modules.strip().lower() != "all":
            logger.info(
                f"Tool filtering active: {len(discovered)} modules enabled "
                f"(filter: {self._enabled_modules})"
            )
        else:
            logger.debug(f"Discovered {len(discovered)} tool modules")

        return discovered

    def register_all_tools(self) -> None:
        """Import every discovered module and call its register function."""
        if self._modules_registered:
            logger.debug("Tools already registered, skipping")
            return

        kwargs = {
            "provider": self.server.provider,
            "router": self.server.router,
        }

        registered_count = 0
        for module_name in self._discovered_modules:
            try:
                module = importlib.import_module(f".{module_name}", PACKAGE)

                # Convention: register_*_tools
                register_func = None
                for attr_name in dir(module):
                    if attr_name.startswith("register_") and attr_name.endswith("_tools"):
                        register_func = getattr(module, attr_name)
                        break

                if register_func:
                    register_func(self.mcp, self.client, **kwargs)
                    registered_count += 1
                    logger.debug(f"Registered tools from {module_name}")
                else:
                    logger.warning(f"Module {module_name} has no register_*_tools function")

            except Exception as e:
                logger.error(f"Failed to register tools from {module_name}: {e}")
                raise

        self._modules_registered = True
        logger.info(f"Registered tools from {registered_count} modules")
