from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from services.compressor.application.interfaces import ArtifactRepository
from services.compressor.config import CompressorConfig
from services.compressor.domain.artifact import SidecarMetadata, StoredArtifact
from services.compressor.domain.errors import ArtifactStorageError

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".json"
STAGING_SUFFIX = ".part"


class FileSystemArtifactRepository(ArtifactRepository):
    """Compressed files and their ``<file>.json`` sidecars in one flat directory.

    Output is staged as ``<name>.part`` in a sibling staging directory that is
    never served, and renamed into place only after its sidecar exists, so a
    concurrent listing or download never sees a half-written file or a file
    without metadata.
    """

    def __init__(self, output_dir: Path, staging_dir: Path | None = None) -> None:
        self._output_dir = output_dir
        self._staging_dir = staging_dir or default_staging_dir(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def staging_dir(self) -> Path:
        return self._staging_dir

    def staging_path(self, file_name: str) -> Path:
        self._staging_dir.mkdir(parents=True, exist_ok=True)
        return self._staging_dir / f"{file_name}{STAGING_SUFFIX}"

    def sidecar_path(self, file_name: str) -> Path:
        return self._output_dir / f"{file_name}{SIDECAR_SUFFIX}"

    def publish(self, file_name: str, staged_path: Path, metadata: SidecarMetadata) -> Path:
        final_path = self._output_dir / file_name
        sidecar = self.sidecar_path(file_name)
        try:
            _write_json_atomic(
                sidecar, metadata.to_json(), self.staging_path(sidecar.name)
            )
        except OSError as exc:
            raise ArtifactStorageError(f"could not write metadata for {file_name}: {exc}") from exc
        try:
            os.replace(staged_path, final_path)
        except OSError as exc:
            sidecar.unlink(missing_ok=True)
            raise ArtifactStorageError(f"could not publish {file_name}: {exc}") from exc
        return final_path

    def discard(self, staged_path: Path) -> None:
        try:
            staged_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove staged output %s: %s", staged_path, exc)

    def list(self) -> list[StoredArtifact]:
        try:
            entries = sorted(self._output_dir.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            raise ArtifactStorageError(f"cannot read {self._output_dir}: {exc}") from exc

        artifacts = []
        for entry in entries:
            if entry.name.startswith(".") or entry.name.endswith(SIDECAR_SUFFIX):
                continue
            if not entry.is_file():
                continue
            original_name, original_size = self._read_sidecar(entry.name)
            artifacts.append(
                StoredArtifact(
                    file_name=entry.name,
                    original_name=original_name,
                    original_size=original_size,
                    compressed_size=_file_size(entry),
                )
            )
        return artifacts

    def _read_sidecar(self, file_name: str) -> tuple[str, int]:
        sidecar = self.sidecar_path(file_name)
        if not sidecar.exists():
            return "", 0
        try:
            data = json.loads(sidecar.read_text(encoding="utf-8"))
            return str(data.get("originalName", "")), int(data.get("originalSize", 0))
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring unreadable sidecar %s: %s", sidecar.name, exc)
            return "", 0


def default_staging_dir(output_dir: Path) -> Path:
    return output_dir.parent / f".{output_dir.name}-staging"


def _write_json_atomic(path: Path, payload: dict[str, object], tmp_path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        tmp_path.write_text(json.dumps(payload), encoding="utf-8")
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def create_artifact_repository(config: CompressorConfig) -> ArtifactRepository:
    return FileSystemArtifactRepository(config.output_dir)
