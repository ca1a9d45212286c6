"""
数据库基础设施模块
"""

from .database_factory import (
    DatabaseFactory,
    Environment,
    get_engine,
    get_session_factory,
    get_session,
)
from .types import UtcDateTime

__all__ = [
    "DatabaseFactory",
    "Environment",
    "get_engine",
    "get_session_factory",
    "get_session",
    "UtcDateTime",
]
