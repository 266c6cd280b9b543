from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from services.compressor.domain.media import MediaType


class ArtifactStatus(str, Enum):
    COMPRESSED = "compressed"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class CompressedArtifact:
    source_file_name: str
    media_type: MediaType
    status: ArtifactStatus
    original_size_bytes: int
    compressed_size_bytes: int = 0
    compressed_relative_path: str | None = None
    error: str | None = None

    @classmethod
    def rejected(
        cls, source_file_name: str, media_type: MediaType, size: int, reason: str
    ) -> "CompressedArtifact":
        return cls(
            source_file_name=source_file_name,
            media_type=media_type,
            status=ArtifactStatus.REJECTED,
            original_size_bytes=size,
            error=reason,
        )

    @classmethod
    def failed(
        cls, source_file_name: str, media_type: MediaType, size: int, reason: str
    ) -> "CompressedArtifact":
        return cls(
            source_file_name=source_file_name,
            media_type=media_type,
            status=ArtifactStatus.FAILED,
            original_size_bytes=size,
            error=reason,
        )


@dataclass(frozen=True)
class SidecarMetadata:
    original_name: str
    original_size: int

    def to_json(self) -> dict[str, object]:
        return {"originalName": self.original_name, "originalSize": self.original_size}


@dataclass(frozen=True)
class StoredArtifact:
    file_name: str
    original_name: str
    original_size: int
    compressed_size: int
