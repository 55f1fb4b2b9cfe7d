"""Unit tests for tool module discovery and filtering."""

from unittest.mock import MagicMock

import pytest

from hass_mcp.tools.registry import ToolsRegistry

ALL_TOOLS = {
    "ha_get_entity",
    "ha_list_entities",
    "ha_search_entities",
    "ha_get_domain_summary",
    "ha_call_service",
    "ha_list_services",
    "ha_api_status",
    "ha_get_config",
    "ha_render_template",
    "ha_get_error_log",
    "ha_get_events",
    "ha_get_history",
    "ha_get_logbook",
    "ha_read_resource",
    "ha_list_automations",
    "ha_toggle_automation",
    "ha_trigger_automation",
    "ha_reload_automations",
}


class TestToolsRegistry:
    """Tests for ToolsRegistry."""

    @pytest.fixture
    def mock_server(self):
        """Create a server stand-in whose mcp captures registered tools."""
        server = MagicMock()
        self.registered_tools = {}

        def tool_decorator(*args, **kwargs):
            def wrapper(func):
                self.registered_tools[func.__name__] = func
                return func
            return wrapper

        server.mcp.tool = tool_decorator
        return server

    def test_discovers_all_modules(self, mock_server):
        registry = ToolsRegistry(mock_server)

        assert registry.discovered_modules == [
            "tools_automations",
            "tools_entities",
            "tools_history",
            "tools_resources",
            "tools_service",
            "tools_system",
        ]

    def test_registers_all_tools(self, mock_server):
        ToolsRegistry(mock_server).register_all_tools()
        assert set(self.registered_tools) == ALL_TOOLS

    def test_readonly_excludes_service_calls(self, mock_server):
        ToolsRegistry(mock_server, enabled_modules="readonly").register_all_tools()

        assert "ha_call_service" not in self.registered_tools
        assert "ha_trigger_automation" not in self.registered_tools
        assert "ha_get_entity" in self.registered_tools

    def test_explicit_module_list(self, mock_server):
        ToolsRegistry(mock_server, enabled_modules="tools_system, tools_resources").register_all_tools()

        assert set(self.registered_tools) == {
            "ha_api_status",
            "ha_get_config",
            "ha_render_template",
            "ha_get_error_log",
            "ha_get_events",
            "ha_read_resource",
        }

    def test_registration_is_idempotent(self, mock_server):
        registry = ToolsRegistry(mock_server, enabled_modules="tools_system")
        registry.register_all_tools()
        self.registered_tools.clear()

        registry.register_all_tools()

        assert self.registered_tools == {}
