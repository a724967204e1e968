"""
Credential decryption for job parameters.

Sensitive job parameters (user name, password, SSH key passphrase) may be
stored encrypted with the scheduler's process-wide AES-256-GCM key. Values are
base64 text laid out as ``nonce(16) || ciphertext || tag(16)``.

Decryption is best-effort: a value that cannot be decrypted is logged and
passed through unchanged, so the failure surfaces at connect time.
"""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass, replace

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ftpfetch.exceptions import ConfigurationError, CredentialDecryptionWarning
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.jobs.credentials")

NONCE_SIZE = 16
TAG_SIZE = 16
KEY_SIZES = (16, 24, 32)


@dataclass(frozen=True)
class Credentials:
    user_name: str | None = None
    password: str | None = None
    key_passphrase: str | None = None


def load_key(key: bytes | str) -> bytes:
    """
    Normalise a symmetric key.

    ``str`` keys are base64 text (as stored in host configuration); ``bytes``
    keys of a valid AES length are used as-is, otherwise treated as base64.
    """
    if isinstance(key, bytes) and len(key) in KEY_SIZES:
        return key
    raw = base64.b64decode(key, validate=True)
    if len(raw) not in KEY_SIZES:
        raise ValueError(f"encryption key must be 128, 192 or 256 bits, got {len(raw) * 8}")
    return raw


def generate_key() -> str:
    """Return a new random 256-bit key as base64 text."""
    return base64.b64encode(AESGCM.generate_key(bit_length=256)).decode("ascii")


def encrypt_value(plaintext: str, key: bytes | str) -> str:
    """Encrypt ``plaintext`` into the stored base64 form."""
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(load_key(key)).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt_value(ciphertext: str, key: bytes | str) -> str:
    """
    Decrypt a value produced by :func:`encrypt_value`.

    Raises:
        ValueError: Malformed base64, truncated payload, wrong key or tampered data.
    """
    raw = base64.b64decode(ciphertext, validate=True)
    if len(raw) < NONCE_SIZE + TAG_SIZE:
        raise ValueError("ciphertext too short")
    try:
        plaintext = AESGCM(load_key(key)).decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
    except InvalidTag as e:
        raise ValueError("authentication tag mismatch (wrong key or corrupted value)") from e
    return plaintext.decode("utf-8")


def decrypt_credentials(
    credentials: Credentials,
    *,
    enabled: bool,
    key: bytes | str | None,
    strict: bool = False,
    job_name: str | None = None,
    issues: list[CredentialDecryptionWarning] | None = None,
) -> Credentials:
    """
    Decrypt credential fields when encryption is enabled.

    The user name is always attempted; password and key passphrase only when
    non-empty. Each field is handled independently: a failure keeps that
    field's raw value and is logged as a warning (or raised as a
    ConfigurationError when ``strict``).

    Args:
        credentials: Raw values from the job parameters
        enabled: Encryption feature flag
        key: Process-wide symmetric key (base64 text or raw bytes)
        strict: Raise instead of passing undecryptable values through
        job_name: Used in diagnostics
        issues: Optional list that receives each warning raised

    Returns:
        Credentials with decrypted values (the same object when disabled)
    """
    if not enabled:
        return credentials

    targets = {"user_name": credentials.user_name is not None}
    targets["password"] = bool(credentials.password)
    targets["key_passphrase"] = bool(credentials.key_passphrase)

    if not key:
        if any(targets.values()):
            _report(
                CredentialDecryptionWarning("credentials", "encryption is enabled but no key is configured"),
                strict=strict,
                job_name=job_name,
                issues=issues,
            )
        return credentials

    decrypted: dict[str, str] = {}
    for field, attempt in targets.items():
        if not attempt:
            continue
        try:
            decrypted[field] = decrypt_value(getattr(credentials, field), key)
        except (ValueError, TypeError) as e:
            _report(CredentialDecryptionWarning(field, str(e)), strict=strict, job_name=job_name, issues=issues)

    return replace(credentials, **decrypted) if decrypted else credentials


def _report(
    warning: CredentialDecryptionWarning,
    *,
    strict: bool,
    job_name: str | None,
    issues: list[CredentialDecryptionWarning] | None,
) -> None:
    if strict:
        logger.error(f"Error in FtpDownloadJob ({job_name}): {warning}")
        raise ConfigurationError(
            f"{warning} (job: {job_name})", field=warning.field, job_name=job_name, reason="decryption"
        ) from warning
    logger.warning(f"Credential decryption failed in FtpDownloadJob ({job_name}): {warning}; using raw value")
    if issues is not None:
        issues.append(warning)
