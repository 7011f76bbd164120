"""
cfchain configuration.

Pydantic-based settings loaded from CFCHAIN_* environment variables or a
.env file.
"""

from cfchain.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
