"""
Tests for the frame sampler.
"""

import numpy as np
import pytest

from layerpath.core.exceptions import (
    ConfigurationError,
    InvalidGeometryError,
    UnsupportedTransitionError,
)
from layerpath.geometry.contour import Layer, stack_layers
from layerpath.slicing.frames import FrameKind, SamplingPolicy
from layerpath.slicing.sampler import FrameSampler
from layerpath.slicing.transitions import Transition, TransitionSettings


@pytest.mark.unit
@pytest.mark.slicing
class TestOpenStack:
    """Tests for open layer stacks."""

    def test_linear_three_two(self, open_layers_3_2):
        """Test two open layers with 3 and 2 frames and linear transitions."""
        path = FrameSampler(transition=Transition.LINEAR).sample(open_layers_3_2)

        assert path.total == 5
        assert path.layer_counts == (3, 2)
        assert path.transition_counts == (0, 0)
        assert [span.start for span in path.spans] == [0, 3]
        assert [f.layer_index for f in path.frames] == [0, 0, 0, 1, 1]
        assert [f.origin[0] for f in path.frames] == pytest.approx([0.0, 5.0, 10.0, 0.0, 10.0])

    def test_bezier_inserts_between_layers(self, open_layers_3_2):
        """Test Bezier frames sit between layer 0 and layer 1."""
        sampler = FrameSampler(
            transition=Transition.BEZIER, settings=TransitionSettings(count=4)
        )
        path = sampler.sample(open_layers_3_2)

        assert path.total == 9
        assert path.transition_counts == (4, 0)
        assert path.spans[1].start == 7
        kinds = [f.kind for f in path.frames]
        assert kinds[3:7] == [FrameKind.TRANSITION] * 4
        assert all(f.layer_index == 0 for f in path.transition_frames_after(0))
        assert path.transition_frames_after(1) == ()

    def test_frames_by_layer_exclude_transitions(self, open_layers_3_2):
        """Test per-layer grouping contains contour frames only."""
        path = FrameSampler(transition=Transition.BEZIER).sample(open_layers_3_2)
        grouped = path.frames_by_layer
        assert [len(g) for g in grouped] == [3, 2]
        assert all(f.kind is FrameKind.CONTOUR for g in grouped for f in g)

    def test_traversal_order_preserved(self, open_layers_3_2):
        """Test intra-layer indices follow contour order."""
        path = FrameSampler().sample(open_layers_3_2)
        for frames in path.frames_by_layer:
            assert [f.index for f in frames] == list(range(len(frames)))

    def test_interpolated_rejected(self, open_layers_3_2):
        """Test that open layers cannot use interpolated transitions."""
        with pytest.raises(UnsupportedTransitionError):
            FrameSampler(transition=Transition.INTERPOLATED).sample(open_layers_3_2)

    def test_single_layer_has_no_transitions(self, open_line):
        """Test a one-layer stack."""
        layers = stack_layers(open_line, [1.0])
        path = FrameSampler(
            SamplingPolicy.by_count(4), Transition.BEZIER
        ).sample(layers)
        assert path.total == 4
        assert path.transition_counts == (0,)


@pytest.mark.unit
@pytest.mark.slicing
class TestClosedStack:
    """Tests for closed layer stacks."""

    def test_interpolated_seams_advance(self, closed_stack):
        """Test four closed layers of 10 frames with rotating seams."""
        sampler = FrameSampler(
            SamplingPolicy.by_count(10),
            Transition.INTERPOLATED,
            TransitionSettings(count=2, seam_step=3),
        )
        path = sampler.sample(closed_stack)

        assert path.layer_counts == (10, 10, 10, 10)
        assert path.seam_indices == (0, 3, 6, 9)
        for a, b in zip(path.seam_indices, path.seam_indices[1:]):
            assert a != b
        assert path.total == 40 + 3 * 2

    def test_interpolated_layer_starts_at_seam(self, closed_stack):
        """Test the first frame of a layer is the rotated seam sample."""
        sampler = FrameSampler(
            SamplingPolicy.by_count(10),
            Transition.INTERPOLATED,
            TransitionSettings(count=2, seam_step=3),
        )
        path = sampler.sample(closed_stack)
        # Parameter 3/10 on the square: 12 mm along the outline
        assert path.frames_by_layer[1][0].origin == pytest.approx((10.0, 2.0, 2.0))

    def test_interpolated_distance_mode_constant_count(self, square_contour):
        """Test every layer is resampled to the first layer's count."""
        layers = stack_layers(square_contour, [1.0, 2.0, 3.0])
        layers[2] = Layer(
            index=2,
            contour=square_contour.translated(dz=3.0),
            height=3.0,
            sampling=SamplingPolicy.by_distance(1.0),
        )
        sampler = FrameSampler(
            SamplingPolicy.by_distance(4.0),
            Transition.INTERPOLATED,
            TransitionSettings(count=1),
        )
        path = sampler.sample(layers)
        assert path.layer_counts == (10, 10, 10)

    def test_seam_step_multiple_of_count_rejected(self, closed_stack):
        """Test a seam step that never moves the seam."""
        sampler = FrameSampler(
            SamplingPolicy.by_count(10),
            Transition.INTERPOLATED,
            TransitionSettings(seam_step=20),
        )
        with pytest.raises(ConfigurationError):
            sampler.sample(closed_stack)

    def test_linear_closed_no_seam_shift(self, closed_stack):
        """Test closed layers keep their own start without interpolation."""
        path = FrameSampler(SamplingPolicy.by_count(8)).sample(closed_stack)
        assert path.seam_indices == (0, 0, 0, 0)
        assert path.total == 32


@pytest.mark.unit
@pytest.mark.slicing
class TestSamplerValidation:
    """Tests for sampler input handling."""

    def test_empty_stack(self):
        """Test that an empty stack is rejected."""
        with pytest.raises(InvalidGeometryError):
            FrameSampler().sample([])

    def test_misnumbered_stack(self, open_line):
        """Test that layer indices must follow stack order."""
        layers = [Layer(index=1, contour=open_line)]
        with pytest.raises(InvalidGeometryError):
            FrameSampler().sample(layers)

    def test_input_contours_not_mutated(self, closed_stack):
        """Test that sampling leaves the layers untouched."""
        before = [layer.contour.points.copy() for layer in closed_stack]
        FrameSampler(
            SamplingPolicy.by_count(10), Transition.INTERPOLATED
        ).sample(closed_stack)
        for layer, points in zip(closed_stack, before):
            np.testing.assert_array_equal(layer.contour.points, points)

    def test_deterministic(self, closed_stack):
        """Test identical input gives identical frame sequences."""
        sampler = FrameSampler(SamplingPolicy.by_distance(3.0), Transition.BEZIER)
        assert sampler.sample(closed_stack).frames == sampler.sample(closed_stack).frames

    def test_layer_override_policy(self, open_line):
        """Test per-layer sampling overrides."""
        layers = [
            Layer(index=0, contour=open_line),
            Layer(index=1, contour=open_line.translated(dz=1.0), sampling=SamplingPolicy.by_count(7)),
        ]
        path = FrameSampler(SamplingPolicy.by_distance(5.0)).sample(layers)
        assert path.layer_counts == (3, 7)
