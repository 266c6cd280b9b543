from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_repo_env() -> None:
    """Load the nearest .env starting from this file upward."""
    current = Path(__file__).resolve()
    for candidate in [current.parent, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_repo_env()


def _default_tool_path(name: str) -> str:
    if sys.platform == "win32":
        return f"bin/{name}.exe"
    return name


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number") from exc


@dataclass(frozen=True)
class CompressorConfig:
    ffprobe_path: str
    gst_launch_path: str
    output_dir: Path
    public_url_prefix: str
    temp_dir: Path
    max_files: int
    max_images: int
    max_duration_seconds: float
    probe_timeout_seconds: float
    encode_timeout_seconds: float
    artifact_token_bytes: int
    cors_origins: tuple[str, ...]
    host: str
    port: int
    log_level: str


def load_config() -> CompressorConfig:
    prefix = "/" + os.getenv("COMPRESSOR_PUBLIC_URL_PREFIX", "/compressed").strip("/")
    cors_origins = tuple(
        origin.strip()
        for origin in os.getenv("COMPRESSOR_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )
    return CompressorConfig(
        ffprobe_path=os.getenv("FFPROBE_PATH") or _default_tool_path("ffprobe"),
        gst_launch_path=os.getenv("GST_LAUNCH_PATH") or _default_tool_path("gst-launch-1.0"),
        output_dir=Path(os.getenv("COMPRESSOR_OUTPUT_DIR", "public/compressed")),
        public_url_prefix=prefix,
        temp_dir=Path(os.getenv("COMPRESSOR_TEMP_DIR") or tempfile.gettempdir()),
        max_files=_env_int("COMPRESSOR_MAX_FILES", 3),
        max_images=_env_int("COMPRESSOR_MAX_IMAGES", 3),
        max_duration_seconds=_env_float("COMPRESSOR_MAX_DURATION_SECONDS", 120.0),
        probe_timeout_seconds=_env_float("COMPRESSOR_PROBE_TIMEOUT_SECONDS", 30.0),
        encode_timeout_seconds=_env_float("COMPRESSOR_ENCODE_TIMEOUT_SECONDS", 300.0),
        artifact_token_bytes=_env_int("COMPRESSOR_ARTIFACT_TOKEN_BYTES", 8),
        cors_origins=cors_origins,
        host=os.getenv("COMPRESSOR_HOST", "0.0.0.0"),
        port=_env_int("COMPRESSOR_PORT", 5000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
