"""Configuration module for the admin user provisioning service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
