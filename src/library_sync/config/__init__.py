"""Configuration management for the library sync client."""

from .api import APIConfig
from .settings import Settings

__all__ = ["Settings", "APIConfig"]
