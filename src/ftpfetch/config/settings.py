"""
Typed views over the process-wide sections of an ftpfetch config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from ftpfetch.config.loader import Config
from ftpfetch.config.resolver import is_unresolved

# Setting name the scheduler host stores the symmetric key under
ENCRYPTION_KEY_SETTING = "SchedulerEncryptionKey"
ENCRYPTION_KEY_ENV_VARS = (ENCRYPTION_KEY_SETTING, "FTPFETCH_ENCRYPTION_KEY")


@dataclass(frozen=True)
class EncryptionSettings:
    enabled: bool = False
    key: str | None = None
    # Raise instead of warn when a credential cannot be decrypted
    strict: bool = False


@dataclass(frozen=True)
class TransferSettings:
    timeout_s: float = 30.0
    use_tls: bool = False
    protocol: str | None = None


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def encryption_settings(config: Config) -> EncryptionSettings:
    """
    Build EncryptionSettings from the ``encryption`` section.

    The key is read from ``encryption.key``; when that is absent (or an
    unresolved ``${VAR}`` placeholder) the environment is consulted.
    """
    enabled = _as_bool(config.get("encryption.enabled", False))
    key = config.get("encryption.key")
    if not key or is_unresolved(key):
        key = next((os.environ[name] for name in ENCRYPTION_KEY_ENV_VARS if os.environ.get(name)), None)
    return EncryptionSettings(
        enabled=enabled,
        key=key,
        strict=_as_bool(config.get("encryption.strict", False)),
    )


def transfer_settings(config: Config) -> TransferSettings:
    """Build TransferSettings from the ``transfer`` section."""
    protocol = config.get("transfer.protocol")
    return TransferSettings(
        timeout_s=float(config.get("transfer.timeout_s", 30.0)),
        use_tls=_as_bool(config.get("transfer.use_tls", False)),
        protocol=str(protocol).lower() if protocol else None,
    )
