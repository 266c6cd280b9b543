import math

import pytest

from services.compressor.domain.compression import ProbeResult, plan_video_compression


def _probe(bitrate, has_audio=True):
    return ProbeResult(
        duration_seconds=30.0, container_bitrate_bps=bitrate, has_audio_track=has_audio
    )


@pytest.mark.parametrize(
    "bitrate, expected_kbps",
    [
        (0, 100),
        (999_999, 1099),
        (3_000_000, 3100),
        (4_999_999, 5099),
        (5_000_000, 5000),
        (20_000_000, 5000),
    ],
)
def test_video_bitrate_follows_container_bitrate_below_hd(bitrate, expected_kbps):
    assert plan_video_compression(_probe(bitrate)).video_bitrate_kbps == expected_kbps


def test_downscale_only_below_one_megabit():
    assert plan_video_compression(_probe(999_999)).should_downscale is True
    assert plan_video_compression(_probe(1_000_000)).should_downscale is False


def test_unknown_bitrate_is_treated_as_high_bitrate():
    plan = plan_video_compression(_probe(None))

    assert plan.video_bitrate_kbps == 5000
    assert plan.should_downscale is False


def test_audio_branch_follows_audio_presence():
    assert plan_video_compression(_probe(2_000_000, has_audio=True)).include_audio_branch
    assert not plan_video_compression(_probe(2_000_000, has_audio=False)).include_audio_branch


def test_audio_bitrate_is_fixed():
    assert plan_video_compression(_probe(2_000_000)).audio_bitrate_bps == 96_000


def test_probe_result_reports_unknown_duration():
    assert not ProbeResult(math.nan, None, False).duration_known
    assert ProbeResult(12.5, None, False).duration_known
