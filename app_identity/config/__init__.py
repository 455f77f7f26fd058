"""Configuration module for the identity application."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
