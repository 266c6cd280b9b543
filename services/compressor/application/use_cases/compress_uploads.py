from __future__ import annotations

import logging
import re
from pathlib import Path, PurePath
from typing import Callable

from services.compressor.application.dto import CompressUploadsCommand, UploadedFile
from services.compressor.application.interfaces import (
    ArtifactRepository,
    IdProvider,
    ImageCompressor,
    MediaEncoder,
    MediaProber,
)
from services.compressor.domain.artifact import (
    ArtifactStatus,
    CompressedArtifact,
    SidecarMetadata,
)
from services.compressor.domain.compression import ProbeResult, plan_video_compression
from services.compressor.domain.errors import (
    ArtifactStorageError,
    BatchValidationError,
    CompressorError,
    DurationExceededError,
    ProbeError,
)
from services.compressor.domain.media import (
    MediaType,
    classify_media,
    file_extension,
    output_extension,
)

logger = logging.getLogger(__name__)

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file format."
VIDEO_TOO_LONG_MESSAGE = (
    "Video duration exceeds 2 minutes. Only videos less than 2 minutes are allowed."
)
VIDEO_DURATION_UNKNOWN_MESSAGE = (
    "Could not determine video duration. "
    "Please upload a valid video file under 2 minutes."
)
AUDIO_TOO_LONG_MESSAGE = "Only audio files less than 2 minutes are allowed."
AUDIO_DURATION_UNKNOWN_MESSAGE = (
    "Could not determine audio duration. "
    "Please upload a valid audio file under 2 minutes."
)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
# Derived names add up to ~45 bytes around the stem; keep them under NAME_MAX.
MAX_STEM_LENGTH = 100

_REJECTING_ERRORS = (ProbeError, DurationExceededError)


class CompressUploadsUseCase:
    def __init__(
        self,
        *,
        prober: MediaProber,
        encoder: MediaEncoder,
        image_compressor: ImageCompressor,
        repository: ArtifactRepository,
        id_provider: IdProvider,
        temp_dir: Path,
        max_files: int = 3,
        max_images: int = 3,
        max_duration_seconds: float = 120.0,
    ) -> None:
        self._prober = prober
        self._encoder = encoder
        self._image_compressor = image_compressor
        self._repository = repository
        self._id_provider = id_provider
        self._temp_dir = temp_dir
        self._max_files = max_files
        self._max_images = max_images
        self._max_duration_seconds = max_duration_seconds

    def execute(self, command: CompressUploadsCommand) -> list[CompressedArtifact]:
        classified = [(upload, classify_media(upload.filename)) for upload in command.files]

        image_count = sum(1 for _, media_type in classified if media_type is MediaType.IMAGE)
        if image_count > self._max_images:
            raise BatchValidationError(
                f"You can only upload up to {self._max_images} images at a time."
            )
        if len(classified) > self._max_files:
            raise BatchValidationError(
                f"You can only upload up to {self._max_files} files at a time."
            )

        return [self._process(upload, media_type) for upload, media_type in classified]

    def _process(self, upload: UploadedFile, media_type: MediaType) -> CompressedArtifact:
        if media_type is MediaType.UNKNOWN:
            logger.info("Rejected %s: unsupported extension", upload.filename)
            return CompressedArtifact.rejected(
                upload.filename, media_type, upload.size, UNSUPPORTED_FORMAT_MESSAGE
            )

        token = self._id_provider.generate()
        stem = _safe_stem(upload.filename, token)
        source_ext = file_extension(upload.filename)
        temp_path = self._temp_dir / f"{stem}_{token}{source_ext}"
        output_name = f"compressed-{stem}_{token}{output_extension(media_type, source_ext)}"

        try:
            _write_temp_file(temp_path, upload.content)
            if media_type is MediaType.VIDEO:
                artifact = self._compress_video(upload, temp_path, output_name)
            elif media_type is MediaType.AUDIO:
                artifact = self._compress_audio(upload, temp_path, output_name)
            else:
                artifact = self._compress_image(upload, temp_path, output_name)
        except _REJECTING_ERRORS as exc:
            logger.info("Rejected %s: %s", upload.filename, exc)
            return CompressedArtifact.rejected(
                upload.filename, media_type, upload.size, str(exc)
            )
        except CompressorError as exc:
            logger.warning("Failed to compress %s: %s", upload.filename, exc)
            return CompressedArtifact.failed(
                upload.filename,
                media_type,
                upload.size,
                f"Compression failed for {upload.filename}: {exc}",
            )
        finally:
            temp_path.unlink(missing_ok=True)

        logger.info(
            "Compressed %s -> %s (%d -> %d bytes)",
            upload.filename,
            output_name,
            artifact.original_size_bytes,
            artifact.compressed_size_bytes,
        )
        return artifact

    def _compress_video(
        self, upload: UploadedFile, temp_path: Path, output_name: str
    ) -> CompressedArtifact:
        probe = self._prober.probe(temp_path)
        self._check_duration(
            probe,
            unknown_message=VIDEO_DURATION_UNKNOWN_MESSAGE,
            too_long_message=VIDEO_TOO_LONG_MESSAGE,
        )
        plan = plan_video_compression(probe)
        logger.debug("Compression plan for %s: %s", upload.filename, plan)
        return self._publish(
            upload,
            MediaType.VIDEO,
            output_name,
            lambda staged: self._encoder.encode_video(temp_path, staged, plan),
        )

    def _compress_audio(
        self, upload: UploadedFile, temp_path: Path, output_name: str
    ) -> CompressedArtifact:
        probe = self._prober.probe(temp_path)
        self._check_duration(
            probe,
            unknown_message=AUDIO_DURATION_UNKNOWN_MESSAGE,
            too_long_message=AUDIO_TOO_LONG_MESSAGE,
        )
        return self._publish(
            upload,
            MediaType.AUDIO,
            output_name,
            lambda staged: self._encoder.encode_audio(temp_path, staged),
        )

    def _compress_image(
        self, upload: UploadedFile, temp_path: Path, output_name: str
    ) -> CompressedArtifact:
        target_ext = PurePath(output_name).suffix
        return self._publish(
            upload,
            MediaType.IMAGE,
            output_name,
            lambda staged: self._image_compressor.compress_image(
                temp_path, staged, target_ext
            ),
        )

    def _check_duration(
        self, probe: ProbeResult, *, unknown_message: str, too_long_message: str
    ) -> None:
        if not probe.duration_known:
            raise ProbeError(unknown_message)
        if probe.duration_seconds > self._max_duration_seconds:
            raise DurationExceededError(too_long_message)

    def _publish(
        self,
        upload: UploadedFile,
        media_type: MediaType,
        output_name: str,
        compress: Callable[[Path], None],
    ) -> CompressedArtifact:
        staged_path = self._repository.staging_path(output_name)
        try:
            compress(staged_path)
            final_path = self._repository.publish(
                output_name,
                staged_path,
                SidecarMetadata(original_name=upload.filename, original_size=upload.size),
            )
        except BaseException:
            self._repository.discard(staged_path)
            raise

        return CompressedArtifact(
            source_file_name=upload.filename,
            media_type=media_type,
            status=ArtifactStatus.COMPRESSED,
            original_size_bytes=upload.size,
            compressed_size_bytes=final_path.stat().st_size,
            compressed_relative_path=output_name,
        )


def _safe_stem(filename: str, token: str) -> str:
    stem = PurePath(PurePath(filename or "").name).stem
    normalized = _UNSAFE_NAME_CHARS.sub("_", stem)[:MAX_STEM_LENGTH].strip("._")
    return normalized or f"upload-{token}"


def _write_temp_file(path: Path, content: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as exc:
        raise ArtifactStorageError(f"could not store upload: {exc}") from exc
