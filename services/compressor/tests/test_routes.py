import io
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from services.compressor.config import CompressorConfig
from services.compressor.domain.compression import ProbeResult
from services.compressor.infrastructure import gstreamer, probe
from services.compressor.infrastructure.artifact_store import default_staging_dir
from services.compressor.main import build_app


def _config(tmp_path: Path) -> CompressorConfig:
    return CompressorConfig(
        ffprobe_path="ffprobe",
        gst_launch_path="gst-launch-1.0",
        output_dir=tmp_path / "compressed",
        public_url_prefix="/compressed",
        temp_dir=tmp_path / "tmp",
        max_files=3,
        max_images=3,
        max_duration_seconds=120.0,
        probe_timeout_seconds=5.0,
        encode_timeout_seconds=5.0,
        artifact_token_bytes=8,
        cors_origins=("*",),
        host="127.0.0.1",
        port=5000,
        log_level="INFO",
    )


def _png_bytes(width=800, height=600) -> bytes:
    gradient = Image.linear_gradient("L").resize((width, height))
    buffer = io.BytesIO()
    Image.merge("RGB", (gradient, gradient.rotate(180), gradient)).save(
        buffer, format="PNG", compress_level=0
    )
    return buffer.getvalue()


@pytest.fixture
def config(tmp_path):
    return _config(tmp_path)


@pytest.fixture
def client(config):
    return TestClient(build_app(config))


def test_ping(client):
    assert client.get("/ping").json() == {"message": "pong"}


def test_png_upload_is_compressed_and_served(client, config):
    payload = _png_bytes()

    response = client.post(
        "/upload", files=[("media", ("holiday.png", payload, "image/png"))]
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Uploaded and Compressed"
    (result,) = body["results"]
    assert result["type"] == "image"
    assert result["status"] == "compressed"
    assert result["originalName"] == "holiday.png"
    assert result["originalSize"] == len(payload)
    assert 0 < result["compressedSize"] < result["originalSize"]
    assert result["fileUrl"].startswith("/compressed/compressed-holiday_")
    assert result["error"] is None

    served = client.get(result["fileUrl"])
    assert served.status_code == 200
    assert len(served.content) == result["compressedSize"]
    assert list(config.temp_dir.iterdir()) == []


def test_unknown_extension_gets_rejected_entry(client):
    response = client.post(
        "/upload", files=[("media", ("notes.xyz", b"hello", "application/octet-stream"))]
    )

    assert response.status_code == 200
    (result,) = response.json()["results"]
    assert result["type"] == "unknown"
    assert result["fileUrl"] is None
    assert result["error"] == "Unsupported file format."


def test_long_video_is_rejected(client, config, monkeypatch):
    monkeypatch.setattr(
        probe.FFprobeMediaProber,
        "probe",
        lambda self, path: ProbeResult(150.0, 4_000_000, True),
    )

    def fail_encode(*args, **kwargs):
        raise AssertionError("encoder must not run")

    monkeypatch.setattr(gstreamer, "run_tool", fail_encode)

    response = client.post(
        "/upload", files=[("media", ("match.mp4", b"\x00" * 64, "video/mp4"))]
    )

    (result,) = response.json()["results"]
    assert result["type"] == "video"
    assert result["status"] == "rejected"
    assert result["fileUrl"] is None
    assert "exceeds 2 minutes" in result["error"]
    assert list(config.output_dir.iterdir()) == []
    assert list(config.temp_dir.iterdir()) == []


def test_too_many_images_returns_400(client, config):
    files = [("media", (f"{name}.jpg", b"jpg", "image/jpeg")) for name in "abcd"]

    response = client.post("/upload", files=files)

    assert response.status_code == 400
    assert response.json() == {"message": "You can only upload up to 3 images at a time."}
    assert list(config.temp_dir.iterdir()) == []
    assert list(config.output_dir.iterdir()) == []


def test_staged_output_is_not_served(client, config):
    staging_dir = default_staging_dir(config.output_dir)
    staging_dir.mkdir(exist_ok=True)
    (staging_dir / "compressed-a_1.jpg.part").write_bytes(b"half")

    assert client.get("/compressed/compressed-a_1.jpg.part").status_code == 404
    assert client.get("/compressed").json() == []


def test_too_many_files_returns_400(client):
    files = [("media", (f"{name}.xyz", b"x", "text/plain")) for name in "abcd"]

    response = client.post("/upload", files=files)

    assert response.status_code == 400
    assert "up to 3 files" in response.json()["message"]


def test_missing_files_returns_400(client):
    response = client.post("/upload", data={"other": "value"})

    assert response.status_code == 400


def test_unhandled_failure_returns_500(client, monkeypatch):
    def explode(self, path):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(probe.FFprobeMediaProber, "probe", explode)

    response = client.post(
        "/upload", files=[("media", ("clip.mp4", b"\x00", "video/mp4"))]
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Compression failed", "details": "disk on fire"}


def test_listing_pairs_files_with_sidecars(client, config):
    (config.output_dir / "compressed-a_1.jpg").write_bytes(b"abc")
    (config.output_dir / "compressed-a_1.jpg.json").write_text(
        json.dumps({"originalName": "a.jpg", "originalSize": 1234})
    )
    (config.output_dir / "orphan.mp4").write_bytes(b"12345")

    response = client.get("/compressed")

    assert response.status_code == 200
    assert response.json() == [
        {
            "url": "/compressed/compressed-a_1.jpg",
            "originalName": "a.jpg",
            "compressedSize": 3,
            "originalSize": 1234,
        },
        {
            "url": "/compressed/orphan.mp4",
            "originalName": "",
            "compressedSize": 5,
            "originalSize": 0,
        },
    ]


def test_listing_reports_unreadable_directory(client, config):
    config.output_dir.rmdir()

    response = client.get("/compressed")

    assert response.status_code == 500
    assert response.json() == {"error": "Cannot read compressed directory"}
