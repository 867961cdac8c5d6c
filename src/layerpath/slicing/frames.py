"""
Frame data structures and contour sampling.

A frame is an oriented point along the printing path: its x-axis follows the
path tangent and its y-axis lies in the horizontal plane (tangent x world Z),
so the frame's z-axis points down towards the build plate for planar layers.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np
from compas.geometry import Frame, Point, Vector

from layerpath.core.exceptions import ConfigurationError
from layerpath.geometry.contour import Contour

logger = logging.getLogger(__name__)

WORLD_X = np.array([1.0, 0.0, 0.0])
WORLD_Y = np.array([0.0, 1.0, 0.0])
WORLD_Z = np.array([0.0, 0.0, 1.0])

_EPS = 1e-9

Vector3 = Tuple[float, float, float]


class FrameKind(Enum):
    """Origin of a frame within the path."""

    CONTOUR = "contour"  # Sampled from a layer contour
    TRANSITION = "transition"  # Synthesized between two layers


class SamplingMode(Enum):
    """How many frames are taken from a contour."""

    COUNT = "count"  # Fixed number of frames per layer
    DISTANCE = "distance"  # Approximately one frame per distance unit

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


@dataclass(frozen=True)
class PathFrame:
    """
    Oriented point of the printing path.

    Attributes:
        origin: Position (x, y, z).
        xaxis: Unit path tangent.
        yaxis: Unit vector perpendicular to the tangent.
        layer_index: Layer the frame belongs to.
        index: Position of the frame within its layer (contour frames) or
            within its transition (transition frames).
        kind: Contour or transition frame.
    """

    origin: Vector3
    xaxis: Vector3
    yaxis: Vector3
    layer_index: int
    index: int
    kind: FrameKind = FrameKind.CONTOUR

    @property
    def is_transition(self) -> bool:
        return self.kind is FrameKind.TRANSITION

    @property
    def point(self) -> Point:
        return Point(*self.origin)

    def to_frame(self) -> Frame:
        """Return the frame as a compas Frame."""
        return Frame(self.point, Vector(*self.xaxis), Vector(*self.yaxis))


def make_frame(
    position: Sequence[float],
    tangent: Sequence[float],
    layer_index: int,
    index: int,
    kind: FrameKind = FrameKind.CONTOUR,
) -> PathFrame:
    """
    Build a path frame from a position and a tangent direction.

    The y-axis is ``tangent x Z``. For a vertical tangent the cross product
    vanishes and ``tangent x X`` is used instead; a zero tangent falls back to
    world X.
    """
    xaxis = np.asarray(tangent, dtype=float)
    norm = np.linalg.norm(xaxis)
    xaxis = WORLD_X if norm < _EPS else xaxis / norm

    yaxis = np.cross(xaxis, WORLD_Z)
    if np.linalg.norm(yaxis) < _EPS:
        yaxis = np.cross(xaxis, WORLD_X)

    # compas orthonormalizes the axes
    frame = Frame(Point(*np.asarray(position, dtype=float)), Vector(*xaxis), Vector(*yaxis))
    return PathFrame(
        origin=(frame.point.x, frame.point.y, frame.point.z),
        xaxis=(frame.xaxis.x, frame.xaxis.y, frame.xaxis.z),
        yaxis=(frame.yaxis.x, frame.yaxis.y, frame.yaxis.z),
        layer_index=layer_index,
        index=index,
        kind=kind,
    )


@dataclass(frozen=True)
class SamplingPolicy:
    """
    Rule for sampling frames from a contour.

    Attributes:
        mode: Sample a fixed ``count`` of frames or one frame every ``distance``.
        count: Frames per layer in count mode.
        distance: Target frame spacing (mm) in distance mode.
        reduce_straight: Drop frames on straight stretches.
        keep: Frames kept at both ends of a layer and around every corner
            when reducing.
        angle_threshold: Turning angle (radians) below which a frame counts
            as straight.
    """

    mode: SamplingMode = SamplingMode.DISTANCE
    count: int = 10
    distance: float = 1.0
    reduce_straight: bool = False
    keep: int = 5
    angle_threshold: float = 1e-3

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", SamplingMode(self.mode))
        if self.mode is SamplingMode.COUNT and self.count < 2:
            raise ConfigurationError(
                "Sampling count must be at least 2", details={"count": self.count}
            )
        if self.mode is SamplingMode.DISTANCE and not self.distance > 0:
            raise ConfigurationError(
                "Sampling distance must be positive", details={"distance": self.distance}
            )
        if self.keep < 0:
            raise ConfigurationError("Keep window must not be negative", details={"keep": self.keep})

    @classmethod
    def by_count(cls, count: int, **kwargs) -> "SamplingPolicy":
        return cls(mode=SamplingMode.COUNT, count=count, **kwargs)

    @classmethod
    def by_distance(cls, distance: float, **kwargs) -> "SamplingPolicy":
        return cls(mode=SamplingMode.DISTANCE, distance=distance, **kwargs)

    def frame_count(self, contour: Contour) -> int:
        """Number of frames this policy takes from ``contour``."""
        if self.mode is SamplingMode.COUNT:
            return self.count
        segments = max(int(contour.length / self.distance), 1)
        return segments if contour.closed else segments + 1

    def parameters(self, contour: Contour, count: int | None = None) -> np.ndarray:
        """
        Normalized sample parameters along ``contour``.

        Open contours include both ends; closed contours sample ``[0, 1)``
        so the seam is not duplicated.
        """
        n = self.frame_count(contour) if count is None else count
        if contour.closed:
            return np.arange(n) / n
        return np.linspace(0.0, 1.0, n)


def turning_angles(positions: np.ndarray) -> np.ndarray:
    """Angle between incoming and outgoing direction at every sample (0 at the ends)."""
    angles = np.zeros(len(positions))
    if len(positions) < 3:
        return angles

    incoming = positions[1:-1] - positions[:-2]
    outgoing = positions[2:] - positions[1:-1]
    norms = np.linalg.norm(incoming, axis=1) * np.linalg.norm(outgoing, axis=1)
    cosine = np.einsum("ij,ij->i", incoming, outgoing) / np.where(norms > _EPS, norms, 1.0)
    angles[1:-1] = np.where(norms > _EPS, np.arccos(np.clip(cosine, -1.0, 1.0)), 0.0)
    return angles


def reduce_straight(positions: np.ndarray, keep: int, angle_threshold: float) -> List[int]:
    """
    Indices of the samples to keep after dropping straight stretches.

    The first and last ``keep`` samples are always kept, as are the ``keep``
    samples on both sides of every sample that turns by at least
    ``angle_threshold``.
    """
    n = len(positions)
    angles = turning_angles(positions)

    removable = np.zeros(n, dtype=bool)
    removable[keep : max(n - keep, keep)] = True
    corners = angles >= angle_threshold
    removable &= ~corners

    for i in np.flatnonzero(corners):
        removable[max(i - keep, 0) : min(i + keep + 1, n)] = False

    return [int(i) for i in np.flatnonzero(~removable)]


def sample_contour(
    contour: Contour,
    policy: SamplingPolicy,
    count: int | None = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample positions and tangents along a contour.

    Args:
        contour: Contour to sample.
        policy: Sampling policy.
        count: Force a frame count (ignores the policy mode).

    Returns:
        Tuple of (positions, tangents), each an (n, 3) array.
    """
    positions, tangents = contour.evaluate_many(policy.parameters(contour, count))

    if policy.reduce_straight and count is None:
        kept = reduce_straight(positions, policy.keep, policy.angle_threshold)
        logger.debug(f"Reduced {len(positions)} samples to {len(kept)}")
        positions, tangents = positions[kept], tangents[kept]

    return positions, tangents
