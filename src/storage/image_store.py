"""
Filesystem-backed image store for uploaded product images.

Files are named `<millisecond timestamp><original extension>` and live flat in
`root`. Uploads can be written in two phases: `stage()` writes into the
pending directory, `commit()` moves the file into the store once the product
record exists, `discard()` drops it if the record write failed.
`reconcile()` is the recovery pass for anything left in between.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    committed: List[str] = field(default_factory=list)
    discarded: List[str] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)
    removed_orphans: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "committed": list(self.committed),
            "discarded": list(self.discarded),
            "orphans": list(self.orphans),
            "removed_orphans": list(self.removed_orphans),
        }


class ImageStore:
    def __init__(
        self,
        root: Path,
        pending_root: Optional[Path] = None,
        pending_grace_seconds: int = 3600,
    ) -> None:
        self.root = Path(root).resolve()
        self.pending_root = Path(pending_root).resolve() if pending_root else self.root.parent / f"{self.root.name}_pending"
        self.pending_grace_seconds = pending_grace_seconds
        self.root.mkdir(parents=True, exist_ok=True)
        self.pending_root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------ #
    # Naming / lookup
    # ------------------------------------------------------------------ #
    @staticmethod
    def generate_filename(original_extension: str) -> str:
        return f"{int(time.time() * 1000)}{original_extension or ''}"

    @staticmethod
    def extension_of(original_filename: Optional[str]) -> str:
        return os.path.splitext(original_filename or "")[1]

    def _free_filename(self, original_extension: str) -> str:
        """Timestamp name not yet used in the store or the pending area."""
        stamp = int(time.time() * 1000)
        while True:
            filename = f"{stamp}{original_extension or ''}"
            if not (self.root / filename).exists() and not (self.pending_root / filename).exists():
                return filename
            stamp += 1

    def _inside(self, base: Path, filename: str) -> Path:
        if not filename or Path(filename).name != filename:
            raise ValueError(f"Invalid stored filename: {filename!r}")
        return base / filename

    def resolve(self, filename: str) -> Path:
        """Absolute path of a committed file. Raises ValueError for names that leave the store."""
        return self._inside(self.root, filename)

    def exists(self, filename: str) -> bool:
        try:
            return self.resolve(filename).is_file()
        except ValueError:
            return False

    def list_files(self) -> List[str]:
        return sorted(p.name for p in self.root.iterdir() if p.is_file())

    def list_pending(self) -> List[str]:
        return sorted(p.name for p in self.pending_root.iterdir() if p.is_file())

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def store(self, data: bytes, original_extension: str) -> str:
        """Single-phase write straight into the store."""
        filename = self._free_filename(original_extension)
        self.resolve(filename).write_bytes(data)
        logger.info("Stored image %s (%d bytes)", filename, len(data))
        return filename

    def stage(self, data: bytes, original_extension: str) -> str:
        filename = self._free_filename(original_extension)
        self._inside(self.pending_root, filename).write_bytes(data)
        logger.debug("Staged image %s (%d bytes)", filename, len(data))
        return filename

    def commit(self, filename: str) -> Path:
        target = self.resolve(filename)
        source = self._inside(self.pending_root, filename)
        try:
            os.replace(source, target)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            # Pending area on another filesystem: copy then unlink.
            shutil.move(str(source), str(target))
        logger.info("Committed image %s", filename)
        return target

    def discard(self, filename: str) -> None:
        try:
            self._inside(self.pending_root, filename).unlink()
            logger.info("Discarded pending image %s", filename)
        except FileNotFoundError:
            pass

    # ------------------------------------------------------------------ #
    # Recovery
    # ------------------------------------------------------------------ #
    def reconcile(self, referenced_filenames: Iterable[str], remove_orphans: bool = False) -> ReconcileReport:
        """
        Bring the pending area and the store back in line with the records.

        - pending files a record references are committed
        - unreferenced pending files older than the grace period are discarded
        - committed files no record references are reported as orphans, and
          deleted when remove_orphans is set
        """
        referenced = {name for name in referenced_filenames if name}
        report = ReconcileReport()
        now = time.time()

        for name in self.list_pending():
            if name in referenced:
                self.commit(name)
                report.committed.append(name)
                continue
            age = now - self._inside(self.pending_root, name).stat().st_mtime
            if age >= self.pending_grace_seconds:
                self.discard(name)
                report.discarded.append(name)

        for name in self.list_files():
            if name in referenced:
                continue
            report.orphans.append(name)
            if remove_orphans:
                self.resolve(name).unlink()
                report.removed_orphans.append(name)

        logger.info(
            "Image reconciliation: committed=%d discarded=%d orphans=%d removed=%d",
            len(report.committed),
            len(report.discarded),
            len(report.orphans),
            len(report.removed_orphans),
        )
        return report
