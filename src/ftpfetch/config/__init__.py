"""
Configuration management.

Configuration file parsing, environment resolution, typed settings.
"""

from ftpfetch.config.loader import Config, load_config
from ftpfetch.config.resolver import resolve_config
from ftpfetch.config.settings import EncryptionSettings, TransferSettings, encryption_settings, transfer_settings

__all__ = [
    "load_config",
    "Config",
    "resolve_config",
    "EncryptionSettings",
    "TransferSettings",
    "encryption_settings",
    "transfer_settings",
]
