"""Configuration module for the Agora callables service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
