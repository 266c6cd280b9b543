from __future__ import annotations

import math
from dataclasses import dataclass

HD_BITRATE_BPS = 5_000_000
DOWNSCALE_BELOW_BPS = 1_000_000
BITRATE_HEADROOM_KBPS = 100
AUDIO_BITRATE_BPS = 96_000
DOWNSCALE_WIDTH = 854
DOWNSCALE_HEIGHT = 480


@dataclass(frozen=True)
class ProbeResult:
    """Container-level metadata of a media file.

    ``duration_seconds`` is NaN and ``container_bitrate_bps`` is None when the
    probe could not determine them.
    """

    duration_seconds: float
    container_bitrate_bps: int | None
    has_audio_track: bool

    @property
    def duration_known(self) -> bool:
        return not math.isnan(self.duration_seconds)


@dataclass(frozen=True)
class CompressionPlan:
    video_bitrate_kbps: int
    audio_bitrate_bps: int
    should_downscale: bool
    include_audio_branch: bool


def plan_video_compression(probe: ProbeResult) -> CompressionPlan:
    bitrate = probe.container_bitrate_bps
    known = bitrate is not None and bitrate >= 0

    if known and bitrate < HD_BITRATE_BPS:
        video_bitrate_kbps = bitrate // 1000 + BITRATE_HEADROOM_KBPS
    else:
        video_bitrate_kbps = HD_BITRATE_BPS // 1000

    return CompressionPlan(
        video_bitrate_kbps=video_bitrate_kbps,
        audio_bitrate_bps=AUDIO_BITRATE_BPS,
        should_downscale=known and bitrate < DOWNSCALE_BELOW_BPS,
        include_audio_branch=probe.has_audio_track,
    )
