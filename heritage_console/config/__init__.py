"""
Configuration package for the Heritage Console content engine.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    TranslationProviderSettings,
    CascadeSettings,
    PersistenceSettings,
    SecuritySettings,
    settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "TranslationProviderSettings",
    "CascadeSettings",
    "PersistenceSettings",
    "SecuritySettings",
    "settings",
    "get_settings",
    "reload_settings",
]
