"""
Backup sinks -- where exported backup files go.

The desktop shell hands the file to a save dialog; the kernel only needs
``save(filename, content)``.  DirectoryBackupSink writes into a folder,
going through a temporary file so a failed write never leaves a truncated
backup behind.
"""

from __future__ import annotations

import contextlib
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from devspace_kernel.exceptions import BackupWriteError
from devspace_kernel.logging_config import get_logger

logger = get_logger("persistence.backup_sink")


@runtime_checkable
class BackupSink(Protocol):
    def save(self, filename: str, content: str) -> str:
        """Store ``content`` as ``filename``; return where it went."""
        ...


class DirectoryBackupSink:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory).expanduser()

    def save(self, filename: str, content: str) -> str:
        if Path(filename).name != filename:
            raise BackupWriteError(filename, "filename must not contain a directory")
        target = self.directory / filename
        partial = target.with_name(target.name + ".part")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            partial.write_text(content, encoding="utf-8")
            os.replace(partial, target)
        except OSError as exc:
            with contextlib.suppress(OSError):
                partial.unlink(missing_ok=True)
            raise BackupWriteError(filename, str(exc)) from exc
        logger.info("backup_file_written", extra={"path": str(target), "chars": len(content)})
        return str(target)
