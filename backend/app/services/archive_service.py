import os
import re
import time
from pathlib import Path
from typing import List

from app.utils.log import get_logger

log = get_logger("app.services.archive", "ARCHIVE")

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.\-^]")


class ArchivePathError(Exception):
    pass


def safe_filename(name: str) -> str:
    """Keep only letters, digits, underscore, dot, hyphen and caret."""
    cleaned = UNSAFE_FILENAME_CHARS.sub("", name)
    if cleaned in ("", ".", ".."):
        raise ArchivePathError(f"Unusable filename: {name!r}")
    return cleaned


class ArchiveStore:
    """
    Local copy of every generated file. The CSVs hold personal data, so
    files are created 0600 and removed after the retention period.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root.resolve()

    def resolve(self, filename: str) -> Path:
        root = self.ensure_root()
        path = (root / filename).resolve()
        if path.parent != root:
            raise ArchivePathError(f"Archive path escapes archive directory: {filename!r}")
        return path

    def write(self, filename: str, data: bytes) -> Path:
        """
        Write `data` durably to a new file and return the absolute path.
        An existing archive file is never overwritten.
        """
        path = self.resolve(filename)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        except FileExistsError:
            raise ArchivePathError(f"Archive file already exists: {path.name}")
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(path, 0o600)
        log.debug(f"wrote {path.name} ({len(data)} bytes)")
        return path

    def cleanup(self, days_to_keep: int = 30, now: float = None) -> List[str]:
        """Delete archived CSVs older than `days_to_keep`; return their names."""
        if not self.root.is_dir():
            return []
        cutoff = (now or time.time()) - days_to_keep * 86400
        deleted = []
        for path in sorted(self.root.glob("*.csv")):
            if path.stat().st_mtime < cutoff:
                path.unlink()
                deleted.append(path.name)
        if deleted:
            log.info(f"removed {len(deleted)} archive file(s) older than {days_to_keep} days")
        return deleted
