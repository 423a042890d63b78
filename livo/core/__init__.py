"""Core app configuration, database, errors and security primitives."""

from livo.core.config import get_settings, settings
from livo.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
