"""
Tests for toolgate ToolRegistry and ExecutorTable

Tests cover:
- Registration and duplicate names
- Resolution and classification
- Argument validation with field paths
- Schema export
"""

import pytest
from typing import Annotated, Dict, List, Optional

from toolgate.errors import (
    DuplicateNameError,
    ExecutorNotFoundError,
    SchemaValidationError,
    UnknownToolError,
)
from toolgate.tools import ExecutorTable, SideEffectClass, ToolContext, ToolRegistry, tool


@tool(name="getLocalTime")
async def get_local_time(location: Annotated[str, "City"], *, context: ToolContext) -> str:
    """get the local time for a specified location"""
    return "10am"


@tool(name="tagItems")
async def tag_items(
    items: List[Dict[str, int]],
    label: Optional[str] = None,
    *, context: ToolContext,
) -> str:
    """Tag a batch of items"""
    return "tagged"


_executions = ExecutorTable()


@_executions.tool(name="getWeatherInformation")
async def get_weather_information(city: str, *, context: ToolContext) -> str:
    """show the weather in a given city to the user"""
    return f"The weather in {city} is sunny"


@pytest.fixture
def registry():
    return ToolRegistry([get_local_time, tag_items, get_weather_information])


# =============================================================================
# Registration
# =============================================================================

class TestRegistration:
    """Tests for register / resolve"""

    def test_register_and_resolve(self, registry):
        assert registry.resolve("getLocalTime") is get_local_time
        assert len(registry) == 3
        assert "getWeatherInformation" in registry

    def test_duplicate_name(self, registry):
        with pytest.raises(DuplicateNameError):
            registry.register(get_local_time)

    def test_unknown_tool(self, registry):
        with pytest.raises(UnknownToolError):
            registry.resolve("nope")

    def test_names_in_registration_order(self, registry):
        assert registry.names() == ["getLocalTime", "tagItems", "getWeatherInformation"]


# =============================================================================
# Classification
# =============================================================================

class TestClassification:
    """Classification is derived from executor presence"""

    def test_auto(self, registry):
        assert registry.classify("getLocalTime") == SideEffectClass.AUTO

    def test_requires_confirmation(self, registry):
        assert registry.classify("getWeatherInformation") == SideEffectClass.REQUIRES_CONFIRMATION

    def test_stable_across_calls(self, registry):
        first = registry.classify("getWeatherInformation")
        for _ in range(3):
            assert registry.classify("getWeatherInformation") == first

    def test_unknown_tool(self, registry):
        with pytest.raises(UnknownToolError):
            registry.classify("nope")


# =============================================================================
# Validation
# =============================================================================

class TestValidation:
    """Tests for validate()"""

    def test_valid_arguments(self, registry):
        assert registry.validate("getLocalTime", {"location": "Paris"}) == {"location": "Paris"}

    def test_missing_required_field(self, registry):
        with pytest.raises(SchemaValidationError) as exc_info:
            registry.validate("getWeatherInformation", {})
        assert exc_info.value.field_path == "city"
        assert exc_info.value.tool_name == "getWeatherInformation"

    def test_wrong_type(self, registry):
        with pytest.raises(SchemaValidationError) as exc_info:
            registry.validate("getLocalTime", {"location": 42})
        assert exc_info.value.field_path == "location"

    def test_nested_field_path(self, registry):
        with pytest.raises(SchemaValidationError) as exc_info:
            registry.validate("tagItems", {"items": [{"a": 1}, {"b": "two"}]})
        assert exc_info.value.field_path == "items.1.b"

    def test_unknown_argument(self, registry):
        with pytest.raises(SchemaValidationError) as exc_info:
            registry.validate("getLocalTime", {"location": "Paris", "tz": "CET"})
        assert exc_info.value.field_path == "tz"

    def test_non_object_arguments(self, registry):
        with pytest.raises(SchemaValidationError) as exc_info:
            registry.validate("getLocalTime", "Paris")
        assert exc_info.value.field_path == ""
        assert "must be an object" in str(exc_info.value)

    def test_none_means_no_arguments(self, registry):
        with pytest.raises(SchemaValidationError):
            registry.validate("getLocalTime", None)

    def test_unset_optionals_omitted(self, registry):
        assert registry.validate("tagItems", {"items": []}) == {"items": []}

    def test_unknown_tool(self, registry):
        with pytest.raises(UnknownToolError):
            registry.validate("nope", {})


# =============================================================================
# Schemas
# =============================================================================

class TestSchemas:

    def test_all_schemas(self, registry):
        schemas = registry.schemas()
        assert [s["function"]["name"] for s in schemas] == registry.names()

    def test_selected_schemas(self, registry):
        schemas = registry.schemas(["getWeatherInformation"])
        assert len(schemas) == 1
        assert schemas[0]["function"]["parameters"]["required"] == ["city"]


# =============================================================================
# ExecutorTable
# =============================================================================

class TestExecutorTable:

    def test_missing_executor(self):
        with pytest.raises(ExecutorNotFoundError):
            ExecutorTable().get("getWeatherInformation")

    def test_duplicate_executor(self):
        table = ExecutorTable()

        async def impl(args, context):
            return None

        table.register("x", impl)
        with pytest.raises(DuplicateNameError):
            table.register("x", impl)

    def test_update(self):
        table = ExecutorTable()
        table.update(_executions)
        assert table.names() == ["getWeatherInformation"]
