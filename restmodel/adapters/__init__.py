# flake8: noqa: F401
from .base import Adapter
from .memory import MemoryAdapter
from .sqla import SQLAlchemyAdapter

__all__ = ("Adapter", "MemoryAdapter", "SQLAlchemyAdapter")
