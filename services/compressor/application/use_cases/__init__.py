"""Use cases for the compressor service."""

from .compress_uploads import CompressUploadsUseCase
from .list_artifacts import ListArtifactsUseCase

__all__ = [
    "CompressUploadsUseCase",
    "ListArtifactsUseCase",
]
