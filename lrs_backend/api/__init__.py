"""Thin HTTP adapter over the LRS services."""

from .deps import get_lrs, require_identity
from .errors import ERROR_STATUS, setup_exception_handlers, unwrap
from .xapi import build_router

__all__ = ["ERROR_STATUS", "build_router", "get_lrs", "require_identity", "setup_exception_handlers", "unwrap"]
