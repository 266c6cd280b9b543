from __future__ import annotations

from services.compressor.application.interfaces import ArtifactRepository
from services.compressor.domain.artifact import StoredArtifact


class ListArtifactsUseCase:
    def __init__(self, *, repository: ArtifactRepository) -> None:
        self._repository = repository

    def execute(self) -> list[StoredArtifact]:
        return self._repository.list()
