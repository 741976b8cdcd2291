"""
toolgate Tools - Tool calling system for LLM function calling

Provides:
- ToolDefinition: Define tools with pydantic argument schemas
- ToolRegistry: Register, classify and validate tools
- ExecutorTable: Implementations of confirmation-required tools
- ToolExecutor: Run the model turn loop through the confirmation gate
- @tool decorator: Build auto-executable tools from type hints

Usage:
    from toolgate.tools import tool, ToolContext

    @tool(name="getLocalTime")
    async def get_local_time(location: str, *, context: ToolContext) -> str:
        '''get the local time for a specified location'''
        return "10am"
"""

from .decorator import build_definition, build_input_model, tool
from .executor import ToolExecutor, TurnResult
from .models import (
    Executor,
    SideEffectClass,
    ToolCall,
    ToolCallState,
    ToolContext,
    ToolDefinition,
)
from .registry import ExecutorTable, ToolRegistry

__all__ = [
    # Models
    "Executor",
    "SideEffectClass",
    "ToolCall",
    "ToolCallState",
    "ToolContext",
    "ToolDefinition",
    # Registry
    "ExecutorTable",
    "ToolRegistry",
    # Executor
    "ToolExecutor",
    "TurnResult",
    # Decorator
    "build_definition",
    "build_input_model",
    "tool",
]
