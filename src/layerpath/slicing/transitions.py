"""
Layer-to-layer transitions.

A transition bridges the last frame of one layer and the first frame of the
next. Three policies are available:
1. linear       - no inserted frames, the machine moves straight up
2. bezier       - a cubic Bezier following the end and start tangents
3. interpolated - closed layers only; the seam shifts every layer and the
                  gap is bridged by blending the two frames
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

import numpy as np

from layerpath.core.exceptions import ConfigurationError, UnsupportedTransitionError
from layerpath.slicing.frames import FrameKind, PathFrame, make_frame


class Transition(Enum):
    """Layer-to-layer transition policy."""

    LINEAR = "linear"
    BEZIER = "bezier"
    INTERPOLATED = "interpolated"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


OPEN_TRANSITIONS = frozenset({Transition.LINEAR, Transition.BEZIER})
CLOSED_TRANSITIONS = frozenset(Transition)


@dataclass(frozen=True)
class TransitionSettings:
    """
    Parameters of the inserted transition frames.

    Attributes:
        count: Frames inserted between two layers (bezier, interpolated).
        tension: Bezier handle length as a fraction of the chord.
        seam_step: Frames the seam advances per layer (interpolated).
    """

    count: int = 8
    tension: float = 1.0 / 3.0
    seam_step: int = 1

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ConfigurationError(
                "Transition frame count must not be negative", details={"count": self.count}
            )
        if self.tension < 0:
            raise ConfigurationError(
                "Bezier tension must not be negative", details={"tension": self.tension}
            )


def allowed_transitions(closed_flags: Iterable[bool]) -> frozenset:
    """Transitions allowed for a stack with the given contour kinds."""
    return CLOSED_TRANSITIONS if all(closed_flags) else OPEN_TRANSITIONS


def validate_transition(transition: Transition, closed_flags: Iterable[bool]) -> None:
    """Raise UnsupportedTransitionError if ``transition`` cannot be used."""
    flags = list(closed_flags)
    allowed = allowed_transitions(flags)
    if transition not in allowed:
        raise UnsupportedTransitionError(
            f"Transition '{transition.value}' requires closed contours on every layer",
            transition=transition.value,
            details={
                "open_layers": [i for i, closed in enumerate(flags) if not closed],
                "allowed": sorted(t.value for t in allowed),
            },
        )


def seam_index(layer_index: int, seam_step: int, frame_count: int) -> int:
    """Start frame of a closed layer for interpolated transitions."""
    return (layer_index * seam_step) % frame_count


def _bezier(end: PathFrame, start: PathFrame, settings: TransitionSettings) -> Tuple[PathFrame, ...]:
    p0 = np.asarray(end.origin)
    p3 = np.asarray(start.origin)
    chord = float(np.linalg.norm(p3 - p0))
    if chord == 0.0:
        return ()

    handle = settings.tension * chord
    p1 = p0 + handle * np.asarray(end.xaxis)
    p2 = p3 - handle * np.asarray(start.xaxis)

    frames = []
    for k in range(settings.count):
        u = (k + 1) / (settings.count + 1)
        v = 1.0 - u
        position = v**3 * p0 + 3 * v**2 * u * p1 + 3 * v * u**2 * p2 + u**3 * p3
        derivative = 3 * v**2 * (p1 - p0) + 6 * v * u * (p2 - p1) + 3 * u**2 * (p3 - p2)
        frames.append(make_frame(position, derivative, end.layer_index, k, FrameKind.TRANSITION))
    return tuple(frames)


def _interpolated(
    end: PathFrame, start: PathFrame, settings: TransitionSettings
) -> Tuple[PathFrame, ...]:
    p0, p1 = np.asarray(end.origin), np.asarray(start.origin)
    t0, t1 = np.asarray(end.xaxis), np.asarray(start.xaxis)

    frames = []
    for k in range(settings.count):
        u = (k + 1) / (settings.count + 1)
        tangent = (1.0 - u) * t0 + u * t1
        if np.linalg.norm(tangent) < 1e-9:
            tangent = p1 - p0
        position = (1.0 - u) * p0 + u * p1
        frames.append(make_frame(position, tangent, end.layer_index, k, FrameKind.TRANSITION))
    return tuple(frames)


def transition_frames(
    end: PathFrame,
    start: PathFrame,
    policy: Transition,
    settings: TransitionSettings = TransitionSettings(),
) -> Tuple[PathFrame, ...]:
    """
    Frames inserted between the last frame of one layer and the first frame
    of the next.

    Inserted frames are tagged with the layer index of ``end`` and
    ``FrameKind.TRANSITION``. The endpoints themselves are not repeated.

    Args:
        end: Last frame of the lower layer.
        start: First frame of the upper layer.
        policy: Transition policy.
        settings: Inserted frame count and shape parameters.

    Returns:
        Tuple of inserted frames (empty for ``LINEAR``).
    """
    if policy is Transition.LINEAR:
        return ()
    if policy is Transition.BEZIER:
        return _bezier(end, start, settings)
    if policy is Transition.INTERPOLATED:
        return _interpolated(end, start, settings)
    raise UnsupportedTransitionError(f"Unknown transition: {policy}", transition=str(policy))
