"""
@tool decorator - build ToolDefinition instances from typed async functions.

Inspects the function signature and type hints to build a pydantic model
for the arguments, then wraps the function into the executor signature
expected by ToolDefinition
(``async def executor(args: dict, context: ToolContext) -> Any``).

Usage::

    from typing import Annotated
    from toolgate.tools import tool, ToolContext

    @tool(name="getLocalTime")
    async def get_local_time(
        location: Annotated[str, "City or region"],
        *,
        context: ToolContext,
    ) -> str:
        \"\"\"Get the local time for a specified location.\"\"\"
        ...

    # get_local_time is now an auto-executable ToolDefinition
    # get_local_time.name == "getLocalTime"

Confirmation-required tools are declared through ``ExecutorTable.tool``,
which uses the same machinery but keeps the implementation out of the
definition.
"""

from __future__ import annotations

import inspect
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    Optional,
    Tuple,
    Type,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel, ConfigDict, Field, create_model

from .models import Executor, ToolContext, ToolDefinition

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_NoneType = type(None)


def _is_optional(annotation: Any) -> bool:
    """Return True if *annotation* is ``Optional[X]`` (i.e. ``Union[X, None]``)."""
    origin = get_origin(annotation)
    if origin is Union:
        args = get_args(annotation)
        return _NoneType in args
    return False


def _extract_base_type(annotation: Any) -> Any:
    """Unwrap ``Annotated[T, ...]`` to get ``T``."""
    if get_origin(annotation) is Annotated:
        return get_args(annotation)[0]
    return annotation


def _extract_annotated_description(annotation: Any) -> Optional[str]:
    """If *annotation* is ``Annotated[T, "desc"]``, return ``"desc"``."""
    if get_origin(annotation) is not Annotated:
        return None
    for a in get_args(annotation)[1:]:
        if isinstance(a, str):
            return a
    return None


def _model_name(tool_name: str) -> str:
    """getLocalTime / get_local_time -> GetLocalTimeArgs"""
    parts = tool_name.replace("-", "_").split("_")
    return "".join(p[:1].upper() + p[1:] for p in parts if p) + "Args"


def _iter_params(func: Callable):
    """Yield the parameters the model supplies (skips context and *args/**kwargs)."""
    for name, param in inspect.signature(func).parameters.items():
        if name == "context":
            continue
        if param.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        yield name, param


def build_input_model(func: Callable, tool_name: str) -> Type[BaseModel]:
    """Build a strict pydantic model from *func*'s signature.

    Required-ness follows the signature: a parameter is required when it has
    no default and is not ``Optional``. Unknown argument names are rejected.
    """
    try:
        hints = get_type_hints(func, include_extras=True)
    except Exception:
        hints = {}

    fields: Dict[str, Tuple[Any, Any]] = {}
    for name, param in _iter_params(func):
        annotation = hints.get(name, param.annotation)
        if annotation is inspect.Parameter.empty:
            annotation = str  # default to string

        desc = _extract_annotated_description(annotation)
        if param.default is not inspect.Parameter.empty:
            default = param.default
        elif _is_optional(_extract_base_type(annotation)):
            default = None
        else:
            default = ...

        fields[name] = (annotation, Field(default, description=desc))

    return create_model(
        _model_name(tool_name),
        __config__=ConfigDict(strict=True, extra="forbid"),
        **fields,
    )


def _build_wrapper(func: Callable) -> Executor:
    """Create an executor wrapper with the ToolDefinition-expected signature.

    Returns an ``async def wrapper(args: dict, context: ToolContext)``
    that unpacks *args* into keyword arguments for *func*.
    """
    defaults: Dict[str, Any] = {
        name: param.default
        for name, param in _iter_params(func)
        if param.default is not inspect.Parameter.empty
    }
    names = [name for name, _ in _iter_params(func)]

    async def wrapper(args: Dict[str, Any], context: ToolContext) -> Any:
        kwargs: Dict[str, Any] = {}
        for name in names:
            if name in args:
                kwargs[name] = args[name]
            elif name in defaults:
                kwargs[name] = defaults[name]
        return await func(**kwargs, context=context)

    wrapper.__name__ = getattr(func, "__name__", "wrapper")
    return wrapper


def build_definition(
    fn: Callable,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    auto: bool = True,
) -> Tuple[ToolDefinition, Executor]:
    """Build a ToolDefinition plus the wrapped executor for *fn*.

    When *auto* is False the definition carries no executor and the caller
    is responsible for storing the returned executor somewhere else.
    """
    tool_name = name or fn.__name__
    if description is None:
        # First line of docstring as description
        doc = inspect.getdoc(fn) or ""
        description = doc.split("\n")[0].strip() if doc else tool_name

    executor = _build_wrapper(fn)
    definition = ToolDefinition(
        name=tool_name,
        description=description,
        input_schema=build_input_model(fn, tool_name),
        executor=executor if auto else None,
    )
    return definition, executor


# ---------------------------------------------------------------------------
# Public decorator
# ---------------------------------------------------------------------------


def tool(
    func: Optional[Callable] = None,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Any:
    """Decorator that converts a typed async function into an auto-executable
    :class:`ToolDefinition`.

    Supports both bare ``@tool`` and parameterised ``@tool(name=...)``
    usage. The decorated name is replaced by the ``ToolDefinition``.
    """

    def _make_tool(fn: Callable) -> ToolDefinition:
        definition, _ = build_definition(fn, name=name, description=description)
        return definition

    if func is not None:
        # Called as @tool (no parentheses)
        return _make_tool(func)

    # Called as @tool(...) - return the actual decorator
    return _make_tool
