"""Tool surface the chat orchestrator calls into."""

from __future__ import annotations

from .registry import ApiFunction, call_api, call_api_json, get_api_functions, register_api
from .serializers import encode_result
from .state import api_state

# Import endpoints so decorators run at module import time.
from . import endpoints  # noqa: F401

__all__ = [
    "ApiFunction",
    "api_state",
    "call_api",
    "call_api_json",
    "encode_result",
    "get_api_functions",
    "register_api",
]
