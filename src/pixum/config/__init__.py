"""Configuration module for Pixum."""

from .settings import (
    AdmissionSettings,
    CacheSettings,
    ObservabilitySettings,
    Settings,
    UpstreamSettings,
    get_settings,
)

__all__ = [
    "AdmissionSettings",
    "CacheSettings",
    "ObservabilitySettings",
    "Settings",
    "UpstreamSettings",
    "get_settings",
]
