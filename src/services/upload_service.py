"""Local storage for uploaded photos, scoped to a single request."""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from config.settings import UP_DIR

logger = logging.getLogger(__name__)


class UploadStore:
    """Writes uploads to disk and guarantees they are removed afterwards."""

    def __init__(self, upload_dir: Path = UP_DIR) -> None:
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _target_for(self, index: int, filename: str) -> Path:
        name = secure_filename(filename or "") or "photo"
        return self.upload_dir / f"{int(time.time() * 1000)}-{index}-{name}"

    @contextmanager
    def scoped(self, files: Iterable[FileStorage]) -> Iterator[List[str]]:
        """Save ``files`` and yield their paths; every saved file is deleted on exit."""
        saved: List[str] = []
        try:
            for index, upload in enumerate(files):
                target = self._target_for(index, upload.filename)
                upload.save(str(target))
                saved.append(str(target))
            yield saved
        finally:
            self.remove(saved)

    @staticmethod
    def remove(paths: Iterable[str]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as error:
                logger.warning(f"Failed to clean up upload {path}: {error}")
