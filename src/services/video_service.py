"""Slideshow video rendering through the ffmpeg CLI."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from config.settings import FFMPEG_PATH, FFMPEG_TIMEOUT_SECONDS
from src.services.errors import UpstreamError

logger = logging.getLogger(__name__)

SECONDS_PER_IMAGE = 3
FRAME_RATE = 24
OUTPUT_HEIGHT = 1080
PIXEL_FORMAT = "yuv420p"
VIDEO_CODEC = "libx264"


class VideoService:
    """Turn an ordered list of photos into an MP4 slideshow."""

    def __init__(
        self,
        ffmpeg_path: str = FFMPEG_PATH,
        timeout: float = FFMPEG_TIMEOUT_SECONDS,
        seconds_per_image: int = SECONDS_PER_IMAGE,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.seconds_per_image = seconds_per_image

    def build_concat_list(self, images: Sequence[str]) -> str:
        """Concat demuxer input; the last frame is listed twice so its duration is honoured."""
        lines = []
        for image in images:
            lines.append(f"file '{self._quote(image)}'")
            lines.append(f"duration {self.seconds_per_image}")
        if images:
            lines.append(f"file '{self._quote(images[-1])}'")
        return "\n".join(lines) + "\n"

    def build_command(self, list_path: str, output_path: str) -> List[str]:
        return [
            self.ffmpeg_path,
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", list_path,
            "-vf", f"scale=-2:{OUTPUT_HEIGHT}",
            "-c:v", VIDEO_CODEC,
            "-pix_fmt", PIXEL_FORMAT,
            "-r", str(FRAME_RATE),
            output_path,
        ]

    def render_slideshow(self, images: Sequence[str], output_path: str) -> str:
        if not images:
            raise UpstreamError("Cannot render a slideshow without images")

        list_path = Path(f"{output_path}.txt")
        list_path.write_text(self.build_concat_list([str(Path(image).resolve()) for image in images]))

        try:
            self._run(self.build_command(str(list_path), output_path))
        finally:
            list_path.unlink(missing_ok=True)

        logger.info(f"Rendered slideshow {output_path} from {len(images)} images")
        return output_path

    def _run(self, command: List[str]) -> None:
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as error:
            raise UpstreamError(f"ffmpeg not found at {self.ffmpeg_path}") from error
        except subprocess.TimeoutExpired as error:
            raise UpstreamError(f"ffmpeg timed out after {self.timeout}s") from error

        if result.returncode != 0:
            stderr = self._tail(result.stderr)
            logger.error("ffmpeg exited with %s: %s", result.returncode, stderr)
            raise UpstreamError(f"ffmpeg exited with code {result.returncode}")

    @staticmethod
    def _quote(path: str) -> str:
        return path.replace("'", "'\\''")

    @staticmethod
    def _tail(output: Optional[bytes], limit: int = 2000) -> str:
        if not output:
            return ""
        return output.decode("utf-8", errors="replace")[-limit:]
