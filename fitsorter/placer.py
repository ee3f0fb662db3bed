from pathlib import Path
import logging
import os
import shutil
import tempfile

from .errors import CopyError
from .models import CopyResult

log = logging.getLogger(__name__)

DIR_MODE = 0o755
FILE_MODE = 0o644
PART_SUFFIX = ".part"


def _same_file(src: Path, dst: Path) -> bool:
    try:
        return dst.exists() and os.path.samefile(src, dst)
    except OSError:
        return False


class SafeCopier:
    """Copies source files into the archive, atomically replacing whatever is at the destination."""

    def __init__(self, output_root: Path, dry_run: bool = False):
        self.output_root = Path(output_root)
        self.dry_run = dry_run

    def destination(self, relative: str) -> Path:
        return self.output_root.joinpath(*relative.split("/"))

    def copy_one(self, src: Path, relative: str) -> CopyResult:
        dest_file = self.destination(relative)

        if self.dry_run:
            return CopyResult(src, dest_file, performed=False, reason="dry run")

        # Copying a file onto itself would truncate it
        if _same_file(src, dest_file):
            return CopyResult(src, dest_file, performed=False, reason="same location")

        try:
            dest_file.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise CopyError(f"failed to create '{dest_file.parent}': {exc}") from exc

        # The destination only ever holds one whole source file
        tmp = None
        try:
            fd, tmp = tempfile.mkstemp(prefix=f".{dest_file.name}.", suffix=PART_SUFFIX, dir=dest_file.parent)
            with os.fdopen(fd, "wb") as out, open(src, "rb") as f:
                shutil.copyfileobj(f, out)
            os.chmod(tmp, FILE_MODE)
            os.replace(tmp, dest_file)
        except OSError as exc:
            if tmp is not None:
                Path(tmp).unlink(missing_ok=True)
            raise CopyError(f"failed to copy '{src}' to '{dest_file}': {exc}") from exc

        log.debug("copied %s -> %s", src, dest_file)
        return CopyResult(src, dest_file, performed=True)
