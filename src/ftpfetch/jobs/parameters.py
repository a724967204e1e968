"""
Job parameter resolution.

Turns the untyped key/value map handed over by the scheduler into a validated,
immutable JobParameters.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from ftpfetch.exceptions import ConfigurationError
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.jobs.parameters")

# Parameter map keys
FTP_HOST = "ftpHost"
SERVER_PORT = "serverPort"
USER_NAME = "userName"
PASSWORD = "password"
LOCAL_DIRECTORY_PATH = "localDirectoryPath"
REMOTE_DIRECTORY_PATH = "remoteDirectoryPath"
CUT_OFF = "cutOffTimeSpan"
FILE_EXTENSIONS = "fileExtensions"
SSH_PRIVATE_KEY_PATH = "sshPrivateKeyPath"
SSH_PRIVATE_KEY_PASSWORD = "sshPrivateKeyPassword"
PROTOCOL = "protocol"

DEFAULT_PORT = 21
DEFAULT_CUT_OFF = timedelta(days=1)
PROTOCOLS = ("ftp", "ftps", "sftp")


@dataclass(frozen=True)
class JobParameters:
    host: str
    local_directory_path: str
    file_extensions: frozenset[str]
    port: int = DEFAULT_PORT
    user_name: str | None = None
    password: str | None = None
    remote_directory_path: str | None = None
    cut_off: timedelta = DEFAULT_CUT_OFF
    ssh_private_key_path: str | None = None
    ssh_private_key_password: str | None = None
    protocol: str | None = None

    @property
    def uses_key_auth(self) -> bool:
        return bool(self.ssh_private_key_path)


def resolve_parameters(data: Mapping[str, Any], job_name: str) -> JobParameters:
    """
    Resolve and validate job parameters.

    Args:
        data: Merged parameter map supplied by the scheduler
        job_name: Job name, used in diagnostics only

    Returns:
        Validated JobParameters

    Raises:
        ConfigurationError: A required parameter is missing/empty, or a supplied
            value (port, cut-off, protocol) cannot be parsed.
    """
    host = get_required_parameter(data, FTP_HOST, job_name)
    server_port = get_optional_parameter(data, SERVER_PORT)
    user_name = get_optional_parameter(data, USER_NAME)
    password = get_optional_parameter(data, PASSWORD)
    local_directory_path = get_required_parameter(data, LOCAL_DIRECTORY_PATH, job_name)
    remote_directory_path = get_optional_parameter(data, REMOTE_DIRECTORY_PATH)
    cut_off = get_optional_parameter(data, CUT_OFF)
    file_extensions = get_required_parameter(data, FILE_EXTENSIONS, job_name)
    ssh_private_key_path = get_optional_parameter(data, SSH_PRIVATE_KEY_PATH)
    ssh_private_key_password = get_optional_parameter(data, SSH_PRIVATE_KEY_PASSWORD)
    protocol = get_optional_parameter(data, PROTOCOL)

    extensions = parse_extensions(file_extensions)
    if not extensions:
        _fail(job_name, FILE_EXTENSIONS, f"{FILE_EXTENSIONS} not specified.", reason="missing")

    return JobParameters(
        host=host.strip(),
        port=_parse_port(server_port, job_name),
        user_name=user_name,
        password=password,
        local_directory_path=local_directory_path,
        remote_directory_path=remote_directory_path,
        cut_off=_parse_cut_off(cut_off, job_name),
        file_extensions=extensions,
        ssh_private_key_path=ssh_private_key_path,
        ssh_private_key_password=ssh_private_key_password,
        protocol=_parse_protocol(protocol, job_name),
    )


def get_optional_parameter(data: Mapping[str, Any], name: str) -> str | None:
    """Return the parameter as a string, or None when missing or empty."""
    value = data.get(name)
    if value is None:
        return None
    value = str(value)
    if value == "":
        return None
    return value


def get_required_parameter(data: Mapping[str, Any], name: str, job_name: str) -> str:
    """Return the parameter as a string; missing, empty or blank values raise."""
    value = get_optional_parameter(data, name)
    if value is None or not value.strip():
        _fail(job_name, name, f"{name} not specified.", reason="missing")
    return value


def parse_extensions(value: str) -> frozenset[str]:
    """
    Split a comma-separated extension list.

    Entries are lower-cased and stripped of whitespace, a leading ``*`` and
    leading dots, so ``"CSV, .txt,*.xml"`` yields ``{"csv", "txt", "xml"}``.
    """
    extensions = set()
    for part in value.split(","):
        ext = part.strip().lstrip("*").lstrip(".").strip().lower()
        if ext:
            extensions.add(ext)
    return frozenset(extensions)


_COMPACT_DURATION = re.compile(r"^(\d+)\s*(s|m|h|d)$", re.IGNORECASE)
_COMPACT_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_timespan(text: str) -> timedelta:
    """
    Parse a duration literal.

    Accepts the ``[-][d.]hh:mm[:ss[.fffffff]]``, ``d:hh:mm:ss`` and bare ``d``
    forms used by the scheduler's stored job data (``"1.00:00:00"`` is one
    day), plus compact ``90s``/``30m``/``12h``/``2d`` literals.

    Raises:
        ValueError: If the literal is not a valid duration.
    """
    s = text.strip()
    if not s:
        raise ValueError("empty duration")
    try:
        return _timespan(s, text)
    except OverflowError as e:
        raise ValueError(f"duration out of range: {text!r}") from e


def _timespan(s: str, text: str) -> timedelta:
    compact = _COMPACT_DURATION.match(s)
    if compact:
        return timedelta(**{_COMPACT_UNITS[compact.group(2).lower()]: int(compact.group(1))})

    negative = s.startswith("-")
    if negative:
        s = s[1:]

    if s.isdigit():
        result = timedelta(days=int(s))
        return -result if negative else result

    days = "0"
    parts = s.split(":")
    if len(parts) == 4:
        days, parts = parts[0], parts[1:]
    elif len(parts) in (2, 3):
        if "." in parts[0]:
            days, parts[0] = parts[0].split(".", 1)
    else:
        raise ValueError(f"invalid duration: {text!r}")

    fraction = "0"
    if len(parts) == 3 and "." in parts[2]:
        parts[2], fraction = parts[2].split(".", 1)
        if not fraction.isdigit() or len(fraction) > 7:
            raise ValueError(f"invalid fraction in duration: {text!r}")

    fields = [days, *parts]
    if not all(f.isdigit() for f in fields):
        raise ValueError(f"invalid duration: {text!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"duration component out of range: {text!r}")

    result = timedelta(
        days=int(days),
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        microseconds=int(fraction.ljust(7, "0")) // 10,
    )
    return -result if negative else result


def _parse_port(value: str | None, job_name: str) -> int:
    if value is None:
        return DEFAULT_PORT
    try:
        port = int(value.strip())
    except ValueError:
        _fail(job_name, SERVER_PORT, f"Invalid {SERVER_PORT} [{value}] specified.", reason="invalid")
    if not 0 < port <= 65535:
        _fail(job_name, SERVER_PORT, f"Invalid {SERVER_PORT} [{value}] specified.", reason="invalid")
    return port


def _parse_cut_off(value: str | None, job_name: str) -> timedelta:
    if value is None:
        return DEFAULT_CUT_OFF
    try:
        cut_off = parse_timespan(value)
    except ValueError:
        _fail(job_name, CUT_OFF, f"Invalid {CUT_OFF} format [{value}] specified.", reason="invalid")
    if cut_off < timedelta(0):
        _fail(job_name, CUT_OFF, f"Invalid {CUT_OFF} [{value}]: must not be negative.", reason="invalid")
    return cut_off


def _parse_protocol(value: str | None, job_name: str) -> str | None:
    if value is None:
        return None
    protocol = value.strip().lower()
    if protocol not in PROTOCOLS:
        _fail(
            job_name,
            PROTOCOL,
            f"Invalid {PROTOCOL} [{value}] specified; expected one of {', '.join(PROTOCOLS)}.",
            reason="invalid",
        )
    return protocol


def _fail(job_name: str, field: str, message: str, *, reason: str):
    logger.error(f"Error in FtpDownloadJob ({job_name}): {message}")
    raise ConfigurationError(f"{message} (job: {job_name})", field=field, job_name=job_name, reason=reason)
