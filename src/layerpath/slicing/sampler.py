"""
Frame sampler - turn a layer stack into one flat, ordered frame sequence.

Contour frames of layer ``i`` come first, followed by the transition frames
bridging layer ``i`` to layer ``i + 1``. A ``LayerSpan`` per layer records
where its frames live in the flat sequence.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from layerpath.core.exceptions import ConfigurationError, InvalidGeometryError
from layerpath.geometry.contour import Layer
from layerpath.slicing.frames import FrameKind, PathFrame, SamplingPolicy, make_frame, sample_contour
from layerpath.slicing.transitions import (
    Transition,
    TransitionSettings,
    seam_index,
    transition_frames,
    validate_transition,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerSpan:
    """
    Location of one layer's frames in the flat frame sequence.

    Attributes:
        layer_index: Layer this span describes.
        start: Global index of the layer's first contour frame.
        count: Number of contour frames.
        transition_count: Number of transition frames following the layer.
        seam_index: Contour sample the layer starts at.
    """

    layer_index: int
    start: int
    count: int
    transition_count: int = 0
    seam_index: int = 0

    @property
    def stop(self) -> int:
        """End (exclusive) of the contour frames."""
        return self.start + self.count

    @property
    def transition_stop(self) -> int:
        """End (exclusive) of the trailing transition frames."""
        return self.stop + self.transition_count


@dataclass(frozen=True)
class SampledPath:
    """
    Output of the frame sampler.

    Attributes:
        frames: All frames in print order.
        spans: One span per layer, in layer order.
        layers: The layers the frames were sampled from.
        transition: Transition policy used between layers.
    """

    frames: Tuple[PathFrame, ...]
    spans: Tuple[LayerSpan, ...]
    layers: Tuple[Layer, ...]
    transition: Transition = Transition.LINEAR

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def total(self) -> int:
        return len(self.frames)

    @property
    def layer_count(self) -> int:
        return len(self.spans)

    @property
    def layer_counts(self) -> Tuple[int, ...]:
        """Contour frame count per layer."""
        return tuple(span.count for span in self.spans)

    @property
    def transition_counts(self) -> Tuple[int, ...]:
        """Transition frame count following each layer (0 for the last)."""
        return tuple(span.transition_count for span in self.spans)

    @property
    def frames_by_layer(self) -> Tuple[Tuple[PathFrame, ...], ...]:
        """Contour frames grouped per layer."""
        return tuple(self.frames[span.start : span.stop] for span in self.spans)

    def layer_frames(self, layer_index: int) -> Tuple[PathFrame, ...]:
        span = self.spans[layer_index]
        return self.frames[span.start : span.stop]

    def transition_frames_after(self, layer_index: int) -> Tuple[PathFrame, ...]:
        span = self.spans[layer_index]
        return self.frames[span.stop : span.transition_stop]

    @property
    def seam_indices(self) -> Tuple[int, ...]:
        return tuple(span.seam_index for span in self.spans)


class FrameSampler:
    """
    Sample a layer stack into frames and stitch consecutive layers.

    Args:
        policy: Default sampling policy; a layer's own ``sampling`` overrides it.
        transition: Layer-to-layer transition policy.
        settings: Transition frame parameters.

    Example:
        >>> sampler = FrameSampler(SamplingPolicy.by_count(10), Transition.BEZIER)
        >>> path = sampler.sample(layers)
        >>> path.layer_counts
        (10, 10, 10)
    """

    def __init__(
        self,
        policy: Optional[SamplingPolicy] = None,
        transition: Transition = Transition.LINEAR,
        settings: Optional[TransitionSettings] = None,
    ) -> None:
        self.policy = policy or SamplingPolicy()
        self.transition = Transition(transition)
        self.settings = settings or TransitionSettings()

    def sample(self, layers: Sequence[Layer]) -> SampledPath:
        """
        Sample every layer and insert transition frames between layers.

        Args:
            layers: Ordered layer stack; ``layers[i].index`` must equal ``i``.

        Returns:
            The flat frame sequence with its per-layer spans.

        Raises:
            InvalidGeometryError: For an empty or misnumbered stack.
            UnsupportedTransitionError: If the transition requires closed
                layers and the stack has an open one.
            ConfigurationError: For an interpolated seam step that never
                moves the seam.
        """
        layers = tuple(layers)
        if not layers:
            raise InvalidGeometryError("Cannot sample an empty layer stack")
        for position, layer in enumerate(layers):
            if layer.index != position:
                raise InvalidGeometryError(
                    "Layer indices must run 0..N-1 in stack order",
                    details={"position": position, "index": layer.index},
                )

        validate_transition(self.transition, (layer.closed for layer in layers))

        if self.transition is Transition.INTERPOLATED:
            per_layer, seams = self._sample_interpolated(layers)
        else:
            per_layer = [self._sample_layer(layer) for layer in layers]
            seams = [0] * len(layers)

        frames: List[PathFrame] = []
        spans: List[LayerSpan] = []
        for i, layer_frames in enumerate(per_layer):
            start = len(frames)
            frames.extend(layer_frames)

            inserted: Tuple[PathFrame, ...] = ()
            if i + 1 < len(per_layer):
                inserted = transition_frames(
                    layer_frames[-1], per_layer[i + 1][0], self.transition, self.settings
                )
                frames.extend(inserted)

            spans.append(
                LayerSpan(
                    layer_index=i,
                    start=start,
                    count=len(layer_frames),
                    transition_count=len(inserted),
                    seam_index=seams[i],
                )
            )

        logger.info(
            f"Sampled {len(frames)} frames over {len(layers)} layers "
            f"(transition={self.transition.value})"
        )
        return SampledPath(
            frames=tuple(frames),
            spans=tuple(spans),
            layers=layers,
            transition=self.transition,
        )

    def _policy_for(self, layer: Layer) -> SamplingPolicy:
        return layer.sampling or self.policy

    def _sample_layer(self, layer: Layer) -> List[PathFrame]:
        positions, tangents = sample_contour(layer.contour, self._policy_for(layer))
        return [
            make_frame(p, t, layer.index, j, FrameKind.CONTOUR)
            for j, (p, t) in enumerate(zip(positions, tangents))
        ]

    def _sample_interpolated(
        self, layers: Tuple[Layer, ...]
    ) -> Tuple[List[List[PathFrame]], List[int]]:
        """Resample every layer to the same count and rotate its seam."""
        first_policy = self._policy_for(layers[0])
        count = first_policy.frame_count(layers[0].contour)
        step = self.settings.seam_step

        if len(layers) > 1 and step % count == 0:
            raise ConfigurationError(
                "Seam step must not be a multiple of the per-layer frame count",
                details={"seam_step": step, "frame_count": count},
            )

        per_layer: List[List[PathFrame]] = []
        seams: List[int] = []
        for layer in layers:
            positions, tangents = sample_contour(layer.contour, self._policy_for(layer), count=count)
            seam = seam_index(layer.index, step, count)
            positions = np.roll(positions, -seam, axis=0)
            tangents = np.roll(tangents, -seam, axis=0)
            per_layer.append(
                [
                    make_frame(p, t, layer.index, j, FrameKind.CONTOUR)
                    for j, (p, t) in enumerate(zip(positions, tangents))
                ]
            )
            seams.append(seam)

        logger.debug(f"Interpolated seams: {seams}")
        return per_layer, seams
