"""
Tests for frames and sampling policies.
"""

import numpy as np
import pytest
from compas.geometry import Frame

from layerpath.core.exceptions import ConfigurationError
from layerpath.slicing.frames import (
    FrameKind,
    SamplingMode,
    SamplingPolicy,
    make_frame,
    reduce_straight,
    sample_contour,
)


@pytest.mark.unit
@pytest.mark.slicing
class TestMakeFrame:
    """Tests for frame construction."""

    def test_axes_follow_tangent(self):
        """Test x = tangent and y = tangent x Z."""
        frame = make_frame((1.0, 2.0, 3.0), (2.0, 0.0, 0.0), layer_index=4, index=7)
        assert frame.origin == pytest.approx((1.0, 2.0, 3.0))
        assert frame.xaxis == pytest.approx((1.0, 0.0, 0.0))
        assert frame.yaxis == pytest.approx((0.0, -1.0, 0.0))
        assert frame.layer_index == 4
        assert frame.index == 7
        assert frame.kind is FrameKind.CONTOUR
        assert not frame.is_transition

    def test_vertical_tangent_fallback(self):
        """Test that a vertical tangent still yields an orthonormal frame."""
        frame = make_frame((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 0, 0)
        assert frame.xaxis == pytest.approx((0.0, 0.0, 1.0))
        assert np.dot(frame.xaxis, frame.yaxis) == pytest.approx(0.0)
        assert np.linalg.norm(frame.yaxis) == pytest.approx(1.0)

    def test_zero_tangent_fallback(self):
        """Test that a zero tangent falls back to world X."""
        frame = make_frame((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 0, 0)
        assert frame.xaxis == pytest.approx((1.0, 0.0, 0.0))

    def test_to_compas_frame(self):
        """Test conversion to a compas Frame."""
        frame = make_frame((1.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0, 0, FrameKind.TRANSITION)
        compas_frame = frame.to_frame()
        assert isinstance(compas_frame, Frame)
        assert list(compas_frame.point) == pytest.approx([1.0, 1.0, 0.0])
        assert frame.is_transition

    def test_frames_are_immutable(self):
        """Test that frames cannot be modified."""
        frame = make_frame((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), 0, 0)
        with pytest.raises(AttributeError):
            frame.layer_index = 3


@pytest.mark.unit
@pytest.mark.slicing
class TestSamplingPolicy:
    """Tests for SamplingPolicy."""

    def test_mode_from_string(self):
        """Test case-insensitive mode names."""
        assert SamplingPolicy(mode="Count", count=4).mode is SamplingMode.COUNT

    def test_invalid_count(self):
        """Test that fewer than 2 frames are rejected."""
        with pytest.raises(ConfigurationError):
            SamplingPolicy.by_count(1)

    def test_invalid_distance(self):
        """Test that a non-positive distance is rejected."""
        with pytest.raises(ConfigurationError):
            SamplingPolicy.by_distance(0.0)

    def test_distance_frame_count(self, open_line, square_contour):
        """Test max(int(L / d), 1) segments per layer."""
        policy = SamplingPolicy.by_distance(3.0)
        assert policy.frame_count(open_line) == 4
        assert policy.frame_count(square_contour) == 13

    def test_distance_larger_than_contour(self, open_line, square_contour):
        """Test that at least one segment is sampled."""
        policy = SamplingPolicy.by_distance(100.0)
        assert policy.frame_count(open_line) == 2
        assert policy.frame_count(square_contour) == 1

    def test_closed_parameters_exclude_seam_duplicate(self, square_contour):
        """Test that closed contours sample [0, 1)."""
        params = SamplingPolicy.by_count(4).parameters(square_contour)
        np.testing.assert_allclose(params, [0.0, 0.25, 0.5, 0.75])

    def test_open_parameters_include_ends(self, open_line):
        """Test that open contours include both ends."""
        params = SamplingPolicy.by_count(3).parameters(open_line)
        np.testing.assert_allclose(params, [0.0, 0.5, 1.0])


@pytest.mark.unit
@pytest.mark.slicing
class TestReduceStraight:
    """Tests for straight-stretch reduction."""

    def test_keeps_ends_and_corner_window(self):
        """Test an L-shaped polyline keeps the ends and the corner window."""
        positions = np.array(
            [(float(i), 0.0, 0.0) for i in range(11)] + [(10.0, float(j), 0.0) for j in range(1, 11)]
        )
        kept = reduce_straight(positions, keep=2, angle_threshold=1e-3)
        assert kept == [0, 1, 8, 9, 10, 11, 12, 19, 20]

    def test_short_sequence_untouched(self):
        """Test that sequences shorter than two windows are kept whole."""
        positions = np.array([(float(i), 0.0, 0.0) for i in range(6)])
        assert reduce_straight(positions, keep=5, angle_threshold=1e-3) == list(range(6))

    def test_sample_contour_with_reduction(self, open_line):
        """Test that a straight stroke is reduced to its end windows."""
        policy = SamplingPolicy.by_count(50, reduce_straight=True, keep=3)
        positions, tangents = sample_contour(open_line, policy)
        assert len(positions) == 6
        assert len(tangents) == 6

    def test_sample_contour_is_deterministic(self, square_contour):
        """Test identical input gives identical samples."""
        policy = SamplingPolicy.by_distance(1.5)
        a, _ = sample_contour(square_contour, policy)
        b, _ = sample_contour(square_contour, policy)
        np.testing.assert_array_equal(a, b)
