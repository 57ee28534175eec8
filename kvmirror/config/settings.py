"""
KV-Mirror Configuration Settings

This module contains the configuration constants for the bundled backends.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Backend configuration settings."""

    # File backend settings
    DATA_DIR: str = os.environ.get("KV_MIRROR_DATA_DIR", ".kvmirror")
    FILE_SUFFIX: str = os.environ.get("KV_MIRROR_FILE_SUFFIX", ".json")


# Global settings instance
settings = Settings()
