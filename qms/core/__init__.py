"""Core app configuration and database."""

from qms.core.config import get_settings, settings
from qms.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
