from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageOps

from services.compressor.application.interfaces import ImageCompressor
from services.compressor.domain.errors import ImageCompressionError

MAX_WIDTH = 1280
JPEG_QUALITY = 60
WEBP_QUALITY = 60
PNG_COMPRESS_LEVEL = 8

_JPEG_MODES = {"RGB", "L", "CMYK"}


class PillowImageCompressor(ImageCompressor):
    def __init__(self, *, max_width: int = MAX_WIDTH) -> None:
        self._max_width = max_width

    def compress_image(self, input_path: Path, output_path: Path, target_ext: str) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with Image.open(input_path) as source:
                image = ImageOps.exif_transpose(source)
                image = self._downscale(image)
                self._save(image, output_path, target_ext.lower())
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ImageCompressionError(
                f"could not compress {input_path.name}: {exc}"
            ) from exc

    def _downscale(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        if width <= self._max_width:
            return image
        new_height = max(1, round(height * self._max_width / width))
        return image.resize((self._max_width, new_height), Image.Resampling.LANCZOS)

    def _save(self, image: Image.Image, output_path: Path, target_ext: str) -> None:
        if target_ext == ".png":
            image.save(output_path, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
        elif target_ext == ".webp":
            image.save(output_path, format="WEBP", quality=WEBP_QUALITY)
        else:
            if image.mode not in _JPEG_MODES:
                image = image.convert("RGB")
            image.save(output_path, format="JPEG", quality=JPEG_QUALITY)


def create_image_compressor() -> ImageCompressor:
    return PillowImageCompressor()
