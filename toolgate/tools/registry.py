"""
toolgate Tool Registry - Static catalog of tools plus the table of
confirmed executors for tools that need human approval.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import (
    DuplicateNameError,
    ExecutorNotFoundError,
    SchemaValidationError,
    UnknownToolError,
)
from .decorator import build_definition
from .models import Executor, SideEffectClass, ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Catalog mapping tool name -> ToolDefinition.

    Definitions are registered once at startup and never replaced.

    Example:
        registry = ToolRegistry()
        registry.register(get_local_time)
        registry.classify("getLocalTime")  # SideEffectClass.AUTO
    """

    def __init__(self, definitions: Optional[Iterable[ToolDefinition]] = None):
        self._tools: Dict[str, ToolDefinition] = {}
        for definition in definitions or ():
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            raise DuplicateNameError(definition.name)
        self._tools[definition.name] = definition
        logger.debug(
            f"Registered tool '{definition.name}' ({definition.side_effect_class.value})"
        )

    def resolve(self, name: str) -> ToolDefinition:
        definition = self._tools.get(name)
        if definition is None:
            raise UnknownToolError(name)
        return definition

    def classify(self, name: str) -> SideEffectClass:
        return self.resolve(name).side_effect_class

    def validate(self, name: str, raw_arguments: Any) -> Dict[str, Any]:
        """Validate raw model arguments against the tool's input schema.

        Returns:
            Typed argument dict (unset optional fields are omitted).

        Raises:
            UnknownToolError: tool is not registered
            SchemaValidationError: first offending field, with its path
        """
        definition = self.resolve(name)
        if raw_arguments is None:
            raw_arguments = {}
        if not isinstance(raw_arguments, dict):
            raise SchemaValidationError(name, (), "arguments must be an object")
        try:
            parsed = definition.input_schema.model_validate(raw_arguments)
        except PydanticValidationError as e:
            first = e.errors()[0]
            raise SchemaValidationError(name, first.get("loc", ()), first.get("msg", str(e))) from e
        return parsed.model_dump(exclude_unset=True)

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def schemas(self, names: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """OpenAI-format tool schemas, in registration order."""
        if names is None:
            return [d.to_openai_schema() for d in self._tools.values()]
        return [self.resolve(n).to_openai_schema() for n in names]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


class ExecutorTable:
    """
    Implementations of confirmation-required tools, keyed by tool name.

    Looked up only when a human approves a parked call.

    Example:
        executions = ExecutorTable()

        @executions.tool(name="getWeatherInformation")
        async def get_weather_information(city: Annotated[str, "City"], *, context):
            '''Show the weather in a given city to the user'''
            return f"The weather in {city} is sunny"

        # get_weather_information is a ToolDefinition without an executor;
        # executions.get("getWeatherInformation") returns the implementation.
    """

    def __init__(self):
        self._executors: Dict[str, Executor] = {}

    def register(self, name: str, executor: Executor) -> None:
        if name in self._executors:
            raise DuplicateNameError(name)
        self._executors[name] = executor

    def get(self, name: str) -> Executor:
        executor = self._executors.get(name)
        if executor is None:
            raise ExecutorNotFoundError(name)
        return executor

    def tool(
        self,
        func: Optional[Callable] = None,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Any:
        """Declare a confirmation-required tool and record its implementation."""

        def _make_tool(fn: Callable) -> ToolDefinition:
            definition, executor = build_definition(
                fn, name=name, description=description, auto=False
            )
            self.register(definition.name, executor)
            return definition

        if func is not None:
            return _make_tool(func)
        return _make_tool

    def update(self, other: "ExecutorTable") -> None:
        """Merge another table into this one."""
        for name, executor in other._executors.items():
            self.register(name, executor)

    def names(self) -> List[str]:
        return list(self._executors.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._executors
