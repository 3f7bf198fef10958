"""Zip packaging of a job's working directory."""

import logging
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


class ArchiveService:
    """Compress a directory tree into one deliverable zip."""

    def __init__(self, compresslevel: int = 9) -> None:
        self.compresslevel = compresslevel

    def zip_directory(self, source_dir: str, output_path: str) -> str:
        """Zip everything under ``source_dir`` with paths relative to it.

        ``output_path`` is skipped if it happens to live inside ``source_dir``.
        """
        source = Path(source_dir)
        target = Path(output_path)
        target.parent.mkdir(parents=True, exist_ok=True)

        count = 0
        with zipfile.ZipFile(
            target, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compresslevel
        ) as archive:
            for path in sorted(source.rglob("*")):
                if not path.is_file() or path.resolve() == target.resolve():
                    continue
                archive.write(path, arcname=path.relative_to(source).as_posix())
                count += 1

        logger.info(f"Archived {count} files from {source} into {target}")
        return str(target)
