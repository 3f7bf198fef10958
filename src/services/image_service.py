"""Photo enhancement with Pillow."""

import logging
from pathlib import Path
from typing import List, Sequence

from PIL import Image, ImageEnhance, ImageOps

logger = logging.getLogger(__name__)

TARGET_WIDTH = 1920
BRIGHTNESS = 1.05
SATURATION = 1.05
JPEG_QUALITY = 86


class ImageService:
    """Apply the same deterministic touch-up to every listing photo."""

    def __init__(
        self,
        target_width: int = TARGET_WIDTH,
        brightness: float = BRIGHTNESS,
        saturation: float = SATURATION,
        quality: int = JPEG_QUALITY,
    ) -> None:
        self.target_width = target_width
        self.brightness = brightness
        self.saturation = saturation
        self.quality = quality

    def enhance_all(self, sources: Sequence[str], output_dir: str) -> List[str]:
        """Enhance ``sources`` in order into ``output_dir`` as img_1.jpg, img_2.jpg, ..."""
        out_path = Path(output_dir)
        out_path.mkdir(parents=True, exist_ok=True)

        enhanced = []
        for index, source in enumerate(sources, start=1):
            target = out_path / f"img_{index}.jpg"
            self.enhance(source, str(target))
            enhanced.append(str(target))

        logger.info(f"Enhanced {len(enhanced)} images into {out_path}")
        return enhanced

    def enhance(self, source: str, target: str) -> str:
        with Image.open(source) as original:
            image = ImageOps.exif_transpose(original)
            image = image.convert("RGB")

            if image.width != self.target_width:
                height = max(1, round(image.height * self.target_width / image.width))
                image = image.resize((self.target_width, height), Image.Resampling.LANCZOS)

            image = ImageEnhance.Brightness(image).enhance(self.brightness)
            image = ImageEnhance.Color(image).enhance(self.saturation)
            image.save(target, format="JPEG", quality=self.quality)

        return target
