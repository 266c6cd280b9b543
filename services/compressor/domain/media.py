from __future__ import annotations

from enum import Enum
from pathlib import PurePath


class MediaType(str, Enum):
    AUDIO = "audio"
    IMAGE = "image"
    UNKNOWN = "unknown"
    VIDEO = "video"


IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff", ".avif"}
)
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".wmv", ".flv", ".webm", ".mkv"})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".aac", ".ogg", ".flac", ".m4a"})

# Formats Pillow re-encodes under their own extension; everything else becomes JPEG.
ENCODABLE_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})

VIDEO_OUTPUT_EXTENSION = ".mp4"
AUDIO_OUTPUT_EXTENSION = ".m4a"
IMAGE_FALLBACK_EXTENSION = ".jpg"


def file_extension(filename: str) -> str:
    return PurePath(filename or "").suffix.lower()


def classify_media(filename: str) -> MediaType:
    ext = file_extension(filename)
    if ext in IMAGE_EXTENSIONS:
        return MediaType.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaType.VIDEO
    if ext in AUDIO_EXTENSIONS:
        return MediaType.AUDIO
    return MediaType.UNKNOWN


def output_extension(media_type: MediaType, source_extension: str) -> str:
    if media_type is MediaType.VIDEO:
        return VIDEO_OUTPUT_EXTENSION
    if media_type is MediaType.AUDIO:
        return AUDIO_OUTPUT_EXTENSION
    if source_extension in ENCODABLE_IMAGE_EXTENSIONS:
        return source_extension
    return IMAGE_FALLBACK_EXTENSION
