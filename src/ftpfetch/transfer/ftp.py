"""
FTP/FTPS transfer client (ftplib).

Listing prefers MLSD, which carries type and modification facts in one round
trip. Servers that reject MLSD as unknown or unimplemented fall back to
NLST + MDTM per entry; entries MDTM rejects (directories) are skipped. A
missing directory is a listing failure, never an empty result.
"""

from __future__ import annotations

import ftplib
import os
import posixpath
from datetime import datetime, timezone
from pathlib import Path

from ftpfetch.exceptions import TransferConnectionError, TransferError
from ftpfetch.transfer.base import RemoteFile, TransferClient, discard_partial, part_path
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.transfer.ftp")

_DIR_TYPES = {"dir", "cdir", "pdir"}
# Command not understood or not implemented
_UNSUPPORTED_REPLIES = {"500", "502", "504"}


def parse_ftp_timestamp(value: str) -> datetime:
    """
    Parse an MLSD ``modify`` fact or MDTM reply (``YYYYMMDDHHMMSS[.sss]``, UTC).

    Raises:
        ValueError: If the value is not a valid timestamp.
    """
    value = value.strip()
    if value.startswith("213 "):
        value = value[4:].strip()
    whole, _, fraction = value.partition(".")
    if len(whole) != 14 or not whole.isdigit():
        raise ValueError(f"invalid FTP timestamp: {value!r}")
    parsed = datetime.strptime(whole, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    if fraction.isdigit():
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    return parsed


class FTPTransferClient(TransferClient):
    """Plain FTP session, or explicit FTPS when ``use_tls`` is set."""

    protocol = "ftp"

    def __init__(self, timeout_s: float = 30.0, use_tls: bool = False, passive: bool = True):
        super().__init__(timeout_s=timeout_s)
        self.use_tls = use_tls
        self.passive = passive
        self._ftp: ftplib.FTP | None = None
        if use_tls:
            self.protocol = "ftps"

    @property
    def is_connected(self) -> bool:
        return self._ftp is not None

    def connect(
        self,
        host: str,
        port: int,
        user_name: str | None,
        password: str | None,
        private_key_path: str | None = None,
        private_key_password: str | None = None,
    ) -> None:
        if self._ftp is not None:
            return
        if not host:
            raise TransferConnectionError("FTP connection missing host")
        if private_key_path:
            raise TransferConnectionError(
                f"Key-based authentication is not available over {self.protocol.upper()}; use SFTP",
                details={"host": host, "port": port},
            )
        self.host = host

        ftp = ftplib.FTP_TLS(timeout=self.timeout_s) if self.use_tls else ftplib.FTP(timeout=self.timeout_s)
        try:
            ftp.connect(host, port)
            ftp.login(user_name or "anonymous", password or "")
            if self.use_tls:
                ftp.prot_p()
            ftp.set_pasv(self.passive)
        except ftplib.all_errors as e:
            ftp.close()
            raise TransferConnectionError(
                f"{self.protocol.upper()} connection to {host}:{port} failed: {e}",
                details={"host": host, "port": port},
            ) from e

        self._ftp = ftp
        logger.info(f"Connected to {self.protocol}://{host}:{port} as {user_name or 'anonymous'}")

    def list_files(self, remote_dir: str | None) -> list[RemoteFile]:
        ftp = self._require_ftp()
        try:
            return self._list_mlsd(ftp, remote_dir)
        except ftplib.error_perm as e:
            if _reply_code(e) not in _UNSUPPORTED_REPLIES:
                raise
            logger.debug(f"MLSD unavailable on {self.host} ({e}); falling back to NLST + MDTM")
        return self._list_nlst(ftp, remote_dir)

    def _list_mlsd(self, ftp: ftplib.FTP, remote_dir: str | None) -> list[RemoteFile]:
        files = []
        for name, facts in ftp.mlsd(remote_dir or "", facts=["type", "modify", "size"]):
            if facts.get("type", "file").lower() in _DIR_TYPES or name in (".", ".."):
                continue
            modify = facts.get("modify")
            if not modify:
                logger.debug(f"Skipping {name}: server reported no modification time")
                continue
            files.append(
                RemoteFile(
                    name=name,
                    path=_join(remote_dir, name),
                    modified=parse_ftp_timestamp(modify),
                    size=int(facts.get("size") or 0),
                )
            )
        return files

    def _list_nlst(self, ftp: ftplib.FTP, remote_dir: str | None) -> list[RemoteFile]:
        try:
            entries = ftp.nlst(remote_dir) if remote_dir else ftp.nlst()
        except ftplib.error_perm as e:
            # Some servers answer 550 for an empty directory
            if _reply_code(e) == "550" and _directory_exists(ftp, remote_dir):
                return []
            raise

        files = []
        for entry in entries:
            name = posixpath.basename(entry.rstrip("/"))
            if name in ("", ".", ".."):
                continue
            path = _join(remote_dir, name)
            try:
                modified = parse_ftp_timestamp(ftp.sendcmd(f"MDTM {path}"))
            except ftplib.error_perm:
                # Directories and unreadable entries
                continue
            files.append(RemoteFile(name=name, path=path, modified=modified))
        return files

    def download(self, remote_file: RemoteFile, local_path: Path) -> None:
        ftp = self._require_ftp()
        tmp_path = part_path(local_path)
        try:
            with open(tmp_path, "wb") as fh:
                ftp.retrbinary(f"RETR {remote_file.path}", fh.write)
            os.replace(tmp_path, local_path)
        except BaseException:
            discard_partial(tmp_path)
            raise

    def close(self) -> None:
        if self._ftp is None:
            return
        try:
            self._ftp.quit()
        except ftplib.all_errors:
            self._ftp.close()
        finally:
            self._ftp = None

    def _require_ftp(self) -> ftplib.FTP:
        if self._ftp is None:
            raise TransferError(f"{self.protocol.upper()} session is not connected")
        return self._ftp


def _join(remote_dir: str | None, name: str) -> str:
    return posixpath.join(remote_dir, name) if remote_dir else name


def _reply_code(error: ftplib.Error) -> str:
    return str(error)[:3]


def _directory_exists(ftp: ftplib.FTP, remote_dir: str | None) -> bool:
    """True when ``remote_dir`` (or the session default) can be entered."""
    if not remote_dir:
        return True
    original = ftp.pwd()
    try:
        ftp.cwd(remote_dir)
    except ftplib.error_perm:
        return False
    ftp.cwd(original)
    return True
