from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from services.compressor.domain.artifact import SidecarMetadata, StoredArtifact
    from services.compressor.domain.compression import CompressionPlan, ProbeResult


class IdProvider(Protocol):
    def generate(self) -> str: ...


class MediaProber(Protocol):
    def probe(self, path: Path) -> "ProbeResult": ...


class MediaEncoder(Protocol):
    def encode_video(
        self, input_path: Path, output_path: Path, plan: "CompressionPlan"
    ) -> None: ...

    def encode_audio(self, input_path: Path, output_path: Path) -> None: ...


class ImageCompressor(Protocol):
    def compress_image(
        self, input_path: Path, output_path: Path, target_ext: str
    ) -> None: ...


class ArtifactRepository(Protocol):
    def staging_path(self, file_name: str) -> Path: ...

    def publish(
        self, file_name: str, staged_path: Path, metadata: "SidecarMetadata"
    ) -> Path: ...

    def discard(self, staged_path: Path) -> None: ...

    def list(self) -> list["StoredArtifact"]: ...
