"""Ventry backend package."""

from .app import create_app
from .config import get_settings
from .parser import parse_plan
from .titles import derive_title

__all__ = ["create_app", "derive_title", "get_settings", "parse_plan"]
