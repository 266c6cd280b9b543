from __future__ import annotations

import logging
from pathlib import Path

from services.compressor.application.interfaces import MediaEncoder
from services.compressor.config import CompressorConfig
from services.compressor.domain.compression import (
    AUDIO_BITRATE_BPS,
    DOWNSCALE_HEIGHT,
    DOWNSCALE_WIDTH,
    CompressionPlan,
)
from services.compressor.domain.errors import EncodeError, ToolExecutionError
from services.compressor.infrastructure.process import run_tool

logger = logging.getLogger(__name__)


def _location(path: Path) -> str:
    return f"location={Path(path).resolve().as_posix()}"


def build_video_pipeline(
    input_path: Path, output_path: Path, plan: CompressionPlan
) -> list[str]:
    """Pipeline elements for gst-launch, one argv element per token."""
    pipeline = ["filesrc", _location(input_path), "!", "decodebin", "name=dec"]

    pipeline += ["dec.", "!", "queue", "!"]
    if plan.should_downscale:
        pipeline += [
            "videoscale",
            "!",
            f"video/x-raw,width={DOWNSCALE_WIDTH},height={DOWNSCALE_HEIGHT}",
            "!",
        ]
    pipeline += [
        "videoconvert",
        "!",
        "x264enc",
        f"bitrate={plan.video_bitrate_kbps}",
        "speed-preset=ultrafast",
        "!",
        "queue",
        "!",
        "mux.",
    ]

    if plan.include_audio_branch:
        pipeline += [
            "dec.",
            "!",
            "queue",
            "!",
            "audioconvert",
            "!",
            "voaacenc",
            f"bitrate={plan.audio_bitrate_bps}",
            "!",
            "queue",
            "!",
            "mux.",
        ]

    pipeline += ["mp4mux", "name=mux", "faststart=true", "!", "filesink", _location(output_path)]
    return pipeline


def build_audio_pipeline(input_path: Path, output_path: Path) -> list[str]:
    return [
        "filesrc",
        _location(input_path),
        "!",
        "decodebin",
        "!",
        "queue",
        "!",
        "audioconvert",
        "!",
        "voaacenc",
        f"bitrate={AUDIO_BITRATE_BPS}",
        "!",
        "queue",
        "!",
        "mp4mux",
        "faststart=true",
        "!",
        "filesink",
        _location(output_path),
    ]


class GStreamerEncoder(MediaEncoder):
    def __init__(
        self, *, gst_launch_path: str = "gst-launch-1.0", timeout: float | None = 300.0
    ) -> None:
        self._gst_launch_path = gst_launch_path
        self._timeout = timeout

    def encode_video(self, input_path: Path, output_path: Path, plan: CompressionPlan) -> None:
        self._run(build_video_pipeline(input_path, output_path, plan), input_path, output_path)

    def encode_audio(self, input_path: Path, output_path: Path) -> None:
        self._run(build_audio_pipeline(input_path, output_path), input_path, output_path)

    def _run(self, pipeline: list[str], input_path: Path, output_path: Path) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [self._gst_launch_path, "-e", *pipeline]
        logger.debug("Running gst-launch: %s", cmd)
        try:
            result = run_tool(cmd, timeout=self._timeout)
        except ToolExecutionError as exc:
            raise EncodeError(f"encoder did not complete for {input_path.name}: {exc}") from exc
        if not result.ok:
            stderr = result.stderr.strip() or "unknown error"
            logger.error("gst-launch failed for %s: %s", input_path.name, stderr)
            raise EncodeError(f"gst-launch failed for {input_path.name}: {stderr}")
        if not output_path.exists():
            raise EncodeError(f"gst-launch produced no output for {input_path.name}")


def create_media_encoder(config: CompressorConfig) -> MediaEncoder:
    return GStreamerEncoder(
        gst_launch_path=config.gst_launch_path, timeout=config.encode_timeout_seconds
    )
