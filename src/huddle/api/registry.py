from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union, get_args, get_origin

from .serializers import encode_result

JsonSchema = Dict[str, Any]

_SCALAR_TYPES: Dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    dict: "object",
    list: "array",
}


def _json_type(annotation: Any) -> str:
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        # Optional[X] is described as X.
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _json_type(members[0]) if members else "string"
    return _SCALAR_TYPES.get(origin or annotation, "string")


def _annotation(param: inspect.Parameter, hints: Dict[str, Any]) -> Any:
    # Endpoints use postponed annotations, so prefer the resolved hint over the raw string.
    return hints.get(param.name, param.annotation)


def _parameter_schema(param: inspect.Parameter, hints: Dict[str, Any]) -> JsonSchema:
    schema: JsonSchema = {"type": _json_type(_annotation(param, hints))}
    if isinstance(param.default, (str, int, float, bool)):
        schema["default"] = param.default
    return schema


def _function_schema(func: Callable[..., Any]) -> JsonSchema:
    hints = typing.get_type_hints(func)
    properties: Dict[str, JsonSchema] = {}
    required: List[str] = []
    for param in inspect.signature(func).parameters.values():
        properties[param.name] = _parameter_schema(param, hints)
        if param.default is inspect.Parameter.empty:
            required.append(param.name)
    schema: JsonSchema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


@dataclass(frozen=True)
class ApiFunction:
    """A callable exposed to the orchestrator, with its tool schema built at registration."""

    name: str
    func: Callable[..., Any]
    description: str
    category: str
    tags: tuple[str, ...] = ()
    parameter_schema: JsonSchema = field(default_factory=dict)

    @property
    def parameters(self) -> Dict[str, str]:
        return {name: spec["type"] for name, spec in self.parameter_schema.get("properties", {}).items()}

    def as_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema,
            },
        }


REGISTRY: Dict[str, ApiFunction] = {}


def register_api(
    name: str,
    *,
    description: str,
    category: str,
    tags: Optional[Iterable[str]] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if name in REGISTRY:
            raise ValueError(f"API function '{name}' is already registered.")
        REGISTRY[name] = ApiFunction(
            name=name,
            func=func,
            description=description,
            category=category,
            tags=tuple(tags or ()),
            parameter_schema=_function_schema(func),
        )
        return func

    return decorator


def get_api_functions(category: Optional[str] = None) -> List[ApiFunction]:
    """Registered tools in registration order, optionally limited to one category."""

    return [function for function in REGISTRY.values() if category is None or function.category == category]


def call_api(name: str, **kwargs: Any) -> Any:
    function = REGISTRY.get(name)
    if function is None:
        raise KeyError(f"API function '{name}' is not registered.")
    return function.func(**kwargs)


def call_api_json(name: str, **kwargs: Any) -> bytes:
    return encode_result({"name": name, "result": call_api(name, **kwargs)})
