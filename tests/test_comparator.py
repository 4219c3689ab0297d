from __future__ import annotations

import numpy as np
import pytest

from mailsweep.vision.comparator import PixelComparator, count_mismatched_pixels
from mailsweep.vision.debug import DiagnosticsSink, SinkResult
from mailsweep.vision.models import MatchReason, RasterImage
from tests.helpers import png_bytes, solid_pixels, solid_raster


class RecordingSink(DiagnosticsSink):
    def __init__(self) -> None:
        super().__init__(enabled=True)
        self.calls: list[tuple[RasterImage, str, float]] = []

    def record_failed_match(self, image, reference_id, match_rate) -> SinkResult:
        self.calls.append((image, reference_id, match_rate))
        return SinkResult(saved=True)


def _half_white(width: int = 10, height: int = 10) -> RasterImage:
    pixels = solid_pixels(width, height, (0, 0, 0))
    pixels[height // 2 :, :, :3] = 255
    return RasterImage.from_array(pixels)


def test_identical_rasters_match_fully() -> None:
    outcome = PixelComparator(threshold=1.0).compare(solid_raster(10, 10), solid_raster(10, 10))

    assert outcome.matched
    assert outcome.match_rate == 1.0
    assert outcome.reason is MatchReason.SUCCESS
    assert outcome.compared_size == (10, 10)


def test_half_different_rasters_rate_one_half() -> None:
    outcome = PixelComparator(threshold=0.8).compare(_half_white(), solid_raster(10, 10))

    assert outcome.match_rate == 0.5
    assert outcome.mismatched_pixels == 50
    assert not outcome.matched
    assert outcome.reason is MatchReason.LOW_MATCH_RATE


def test_threshold_is_inclusive() -> None:
    outcome = PixelComparator(threshold=0.5).compare(_half_white(), solid_raster(10, 10))
    assert outcome.matched


@pytest.mark.parametrize(("dw", "dh"), [(6, 0), (0, 6), (6, 6), (-6, 0)])
def test_more_than_five_pixels_apart_is_size_mismatch(dw, dh) -> None:
    sink = RecordingSink()
    comparator = PixelComparator(threshold=0.0, diagnostics=sink)

    outcome = comparator.compare(solid_raster(20 + dw, 20 + dh), solid_raster(20, 20))

    assert outcome.reason is MatchReason.SIZE_MISMATCH
    assert not outcome.matched
    assert outcome.match_rate == 0.0
    assert sink.calls == []


def test_five_pixels_apart_is_cropped_and_compared() -> None:
    candidate = solid_pixels(25, 15, (255, 255, 255))
    candidate[:10, :20, :3] = 0  # top-left region equals the reference

    outcome = PixelComparator().compare(RasterImage.from_array(candidate), solid_raster(20, 10))

    assert outcome.compared_size == (20, 10)
    assert outcome.match_rate == 1.0
    assert outcome.matched


def test_crop_is_anchored_at_origin() -> None:
    reference = solid_raster(20, 20)
    candidate = solid_pixels(23, 23, (255, 255, 255))
    candidate[3:, 3:, :3] = 0  # content shifted towards the bottom-right

    outcome = PixelComparator().compare(RasterImage.from_array(candidate), reference)

    assert outcome.compared_size == (20, 20)
    assert outcome.mismatched_pixels == 20 * 20 - 17 * 17


def test_encoded_inputs_are_decoded() -> None:
    data = png_bytes(solid_pixels(8, 8, (9, 9, 9)))
    outcome = PixelComparator().compare(data, data)
    assert outcome.matched


def test_undecodable_input_is_parse_error() -> None:
    sink = RecordingSink()
    outcome = PixelComparator(diagnostics=sink).compare(b"garbage", solid_raster(4, 4))

    assert outcome.reason is MatchReason.PARSE_ERROR
    assert not outcome.matched
    assert outcome.match_rate == 0.0
    assert sink.calls == []


def test_failed_match_is_sent_to_diagnostics() -> None:
    sink = RecordingSink()
    candidate = _half_white()

    PixelComparator(threshold=0.8, diagnostics=sink).compare(candidate, solid_raster(10, 10), "refs/coupon.png")

    assert len(sink.calls) == 1
    image, reference_id, rate = sink.calls[0]
    assert image is candidate
    assert reference_id == "refs/coupon.png"
    assert rate == 0.5


def test_successful_match_skips_diagnostics() -> None:
    sink = RecordingSink()
    PixelComparator(diagnostics=sink).compare(solid_raster(5, 5), solid_raster(5, 5))
    assert sink.calls == []


def test_diagnostics_failure_does_not_change_outcome(tmp_path) -> None:
    blocker = tmp_path / "debug"
    blocker.write_text("a file where the debug directory should be")
    failing = DiagnosticsSink(blocker)

    without_sink = PixelComparator().compare(_half_white(), solid_raster(10, 10))
    with_failing_sink = PixelComparator(diagnostics=failing).compare(_half_white(), solid_raster(10, 10))

    assert with_failing_sink.matched == without_sink.matched
    assert with_failing_sink.match_rate == without_sink.match_rate
    assert with_failing_sink.reason is without_sink.reason


def test_small_colour_differences_are_tolerated() -> None:
    a = solid_raster(6, 6, (100, 100, 100))
    b = solid_raster(6, 6, (104, 104, 104))

    assert count_mismatched_pixels(a, b, pixel_threshold=0.1) == 0
    assert count_mismatched_pixels(a, b, pixel_threshold=0.0) == 36


def test_antialiased_edge_pixels_are_not_counted() -> None:
    # Black/white halves split by a one-pixel grey seam in one image only.
    base = solid_pixels(9, 9, (255, 255, 255))
    base[:, :4, :3] = 0
    smoothed = base.copy()
    smoothed[:, 4, :3] = 128

    a = RasterImage.from_array(base)
    b = RasterImage.from_array(smoothed)

    assert count_mismatched_pixels(a, b, include_antialiasing=True) == 9
    assert count_mismatched_pixels(a, b) == 0


def test_count_requires_equal_sizes() -> None:
    with pytest.raises(ValueError):
        count_mismatched_pixels(solid_raster(3, 3), solid_raster(3, 4))


def test_transparent_pixels_are_blended_over_white() -> None:
    transparent_black = RasterImage.from_array(solid_pixels(4, 4, (0, 0, 0), alpha=0))
    white = solid_raster(4, 4, (255, 255, 255))
    assert count_mismatched_pixels(transparent_black, white) == 0
    assert np.all(transparent_black.pixels[..., 3] == 0)
