"""Configuration module for KV-Mirror."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
