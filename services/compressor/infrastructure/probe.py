from __future__ import annotations

import logging
import math
from pathlib import Path

from services.compressor.application.interfaces import MediaProber
from services.compressor.config import CompressorConfig
from services.compressor.domain.compression import ProbeResult
from services.compressor.domain.errors import ToolExecutionError
from services.compressor.infrastructure.process import run_tool

logger = logging.getLogger(__name__)

_PLAIN_VALUE_FORMAT = ["-of", "default=noprint_wrappers=1:nokey=1"]


class FFprobeMediaProber(MediaProber):
    def __init__(self, *, ffprobe_path: str = "ffprobe", timeout: float | None = 30.0) -> None:
        self._ffprobe_path = ffprobe_path
        self._timeout = timeout

    def probe(self, path: Path) -> ProbeResult:
        return ProbeResult(
            duration_seconds=self.probe_duration(path),
            container_bitrate_bps=self.probe_bitrate(path),
            has_audio_track=self.has_audio_track(path),
        )

    def probe_duration(self, path: Path) -> float:
        """Container duration in seconds, NaN when it cannot be read."""
        output = self._query(path, ["-show_entries", "format=duration", *_PLAIN_VALUE_FORMAT])
        if output is None:
            return math.nan
        try:
            return float(output)
        except ValueError:
            logger.warning("Unparsable duration %r for %s", output, path.name)
            return math.nan

    def probe_bitrate(self, path: Path) -> int | None:
        output = self._query(path, ["-show_entries", "format=bit_rate", *_PLAIN_VALUE_FORMAT])
        if output is None:
            return None
        try:
            return int(output)
        except ValueError:
            logger.warning("Unparsable bit_rate %r for %s", output, path.name)
            return None

    def has_audio_track(self, path: Path) -> bool:
        output = self._query(
            path,
            ["-select_streams", "a", "-show_entries", "stream=codec_type", "-of", "csv=p=0"],
        )
        return output is not None and "audio" in output

    def _query(self, path: Path, arguments: list[str]) -> str | None:
        cmd = [self._ffprobe_path, "-v", "error", *arguments, path.as_posix()]
        try:
            result = run_tool(cmd, timeout=self._timeout)
        except ToolExecutionError as exc:
            logger.warning("ffprobe could not run for %s: %s", path.name, exc)
            return None
        if not result.ok:
            logger.warning(
                "ffprobe exited with %s for %s: %s",
                result.returncode,
                path.name,
                result.stderr.strip() or "unknown error",
            )
            return None
        return result.stdout.strip()


def create_media_prober(config: CompressorConfig) -> MediaProber:
    return FFprobeMediaProber(
        ffprobe_path=config.ffprobe_path, timeout=config.probe_timeout_seconds
    )
