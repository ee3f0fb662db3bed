from pathlib import Path
from typing import Iterable, Iterator
import os

from .errors import ScanError
from .models import SourceFile


def _raise_scan_error(err: OSError):
    raise ScanError(f"failed to list '{err.filename}': {err.strerror or err}") from err


class FolderScanner:
    """Walks a folder recursively and yields a SourceFile for every non-directory entry."""

    def __init__(self, root: Path, exclude: Iterable[Path] = ()):
        self.root = Path(root)
        self.exclude = {self._key(p) for p in exclude}

    @staticmethod
    def _key(path: Path) -> str:
        return os.path.normcase(os.path.abspath(path))

    def scan(self) -> Iterator[SourceFile]:
        # os.walk only reports a missing root through onerror
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_raise_scan_error):
            # symlinked directories are not followed, report them like any other non-regular entry
            linked = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in linked and self._key(os.path.join(dirpath, d)) not in self.exclude
            )
            for name in sorted(filenames + linked):
                path = Path(dirpath) / name
                try:
                    source = SourceFile.from_path(path)
                except OSError as exc:
                    raise ScanError(f"failed to stat '{path}': {exc}") from exc
                yield source
