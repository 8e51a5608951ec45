"""Configuration module for the OIDC setup tool."""
from .settings import SetupConfig, load_settings

__all__ = ["SetupConfig", "load_settings"]
