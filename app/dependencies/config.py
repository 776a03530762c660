"""
Settings dependency shared by the API routes.
"""

from typing import Annotated

from fastapi import Depends

from app.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the process-wide settings object.

    Kept as its own function so tests can override settings per request via
    ``app.dependency_overrides`` without clearing the ``get_settings`` cache.
    """
    return get_settings()


AppSettingsDep = Annotated[AppSettings, Depends(get_app_settings)]

__all__ = ["AppSettingsDep", "get_app_settings"]
