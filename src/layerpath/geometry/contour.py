"""
Contour and layer data structures.

A contour is one printed layer outline: an ordered polyline in 3D that is
either open (a single stroke) or closed (a loop). Contours are parametrized
by normalized arc length so that sampling policies can be applied uniformly
regardless of how densely the input was digitized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np
from scipy.interpolate import CubicSpline

from layerpath.core.exceptions import InvalidGeometryError

if TYPE_CHECKING:
    from layerpath.slicing.frames import SamplingPolicy

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-6


def _as_points(points: Sequence[Sequence[float]]) -> np.ndarray:
    """Convert a point sequence to an (n, 3) float array."""
    try:
        pts = np.array(points, dtype=float)
    except (ValueError, TypeError) as e:
        raise InvalidGeometryError(
            "Contour points must be numeric coordinates of equal dimension",
            details={"error": str(e)},
        )
    if pts.size == 0:
        return np.zeros((0, 3))
    if pts.ndim != 2 or pts.shape[1] not in (2, 3):
        raise InvalidGeometryError(
            "Contour points must be a sequence of 2D or 3D coordinates",
            details={"shape": list(pts.shape)},
        )
    if pts.shape[1] == 2:
        pts = np.column_stack([pts, np.zeros(len(pts))])
    return pts


def _drop_repeats(pts: np.ndarray, tolerance: float) -> np.ndarray:
    """Remove consecutive points that coincide within tolerance."""
    if len(pts) < 2:
        return pts
    steps = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    keep = np.concatenate([[True], steps > tolerance])
    return pts[keep]


class Contour:
    """
    Ordered, immutable polyline describing one layer outline.

    The parameter ``t`` runs over normalized arc length. For open contours
    ``t`` is valid in ``[0, 1]``; for closed contours any value is accepted
    and wrapped into ``[0, 1)``, the closing segment from the last vertex back
    to the first being implied.

    Args:
        points: Ordered (x, y[, z]) coordinates. 2D input is placed at z = 0.
        closed: Whether the contour is a loop.
        tolerance: Distance below which two points are considered coincident.

    Raises:
        InvalidGeometryError: If fewer than 2 points are given, coordinates are
            not numeric or finite, a closed contour has fewer than 3 distinct
            points, an open contour ends at its start, or the contour has
            zero length.
    """

    __slots__ = ("_points", "_closed", "_tolerance", "_cumulative", "_segments")

    def __init__(
        self,
        points: Sequence[Sequence[float]],
        closed: bool = False,
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> None:
        pts = _as_points(points)

        if len(pts) < 2:
            raise InvalidGeometryError(
                "A contour requires at least 2 points",
                details={"points": int(len(pts))},
            )
        if not np.all(np.isfinite(pts)):
            raise InvalidGeometryError("Contour coordinates must be finite")

        pts = _drop_repeats(pts, tolerance)

        if closed:
            # The closing vertex may be given explicitly or left to wraparound
            if len(pts) > 1 and np.linalg.norm(pts[-1] - pts[0]) <= tolerance:
                pts = pts[:-1]
            if len(pts) < 3:
                raise InvalidGeometryError(
                    "A closed contour requires at least 3 distinct points",
                    details={"points": int(len(pts))},
                )
        elif len(pts) < 2:
            raise InvalidGeometryError("Degenerate contour: all points coincide")
        elif np.linalg.norm(pts[-1] - pts[0]) <= tolerance:
            raise InvalidGeometryError(
                "Open contour ends where it starts; pass closed=True for a loop",
                details={"points": int(len(pts))},
            )

        loop = np.vstack([pts, pts[:1]]) if closed else pts
        segments = np.diff(loop, axis=0)
        lengths = np.linalg.norm(segments, axis=1)
        cumulative = np.concatenate([[0.0], np.cumsum(lengths)])

        if cumulative[-1] <= tolerance:
            raise InvalidGeometryError("Degenerate contour: zero length")

        pts.flags.writeable = False
        segments.flags.writeable = False
        cumulative.flags.writeable = False

        self._points = pts
        self._closed = bool(closed)
        self._tolerance = float(tolerance)
        self._segments = segments
        self._cumulative = cumulative

    # ── Construction helpers ──────────────────────────────────────────

    @classmethod
    def interpolated(
        cls,
        control_points: Sequence[Sequence[float]],
        closed: bool = False,
        samples: int = 64,
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> "Contour":
        """
        Build a contour from a smooth cubic spline through control points.

        The spline uses chord-length knots and is periodic for closed
        contours. It is discretized into ``samples`` vertices.

        Args:
            control_points: Points the spline passes through.
            closed: Whether the spline is a loop.
            samples: Number of vertices of the resulting polyline.
            tolerance: Coincidence tolerance.

        Returns:
            A new Contour approximating the spline.
        """
        pts = _drop_repeats(_as_points(control_points), tolerance)
        if closed and len(pts) > 1 and np.linalg.norm(pts[-1] - pts[0]) <= tolerance:
            pts = pts[:-1]

        minimum = 3 if closed else 2
        if len(pts) < minimum:
            raise InvalidGeometryError(
                f"Spline interpolation requires at least {minimum} distinct points",
                details={"points": int(len(pts))},
            )
        if samples < minimum:
            raise InvalidGeometryError(
                "Spline sample count too small",
                details={"samples": samples, "minimum": minimum},
            )

        if closed:
            pts = np.vstack([pts, pts[:1]])

        chords = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        knots = np.concatenate([[0.0], np.cumsum(chords)])
        spline = CubicSpline(knots, pts, axis=0, bc_type="periodic" if closed else "natural")

        u = np.linspace(0.0, knots[-1], samples, endpoint=not closed)
        return cls(spline(u), closed=closed, tolerance=tolerance)

    # ── Properties ────────────────────────────────────────────────────

    @property
    def points(self) -> np.ndarray:
        """Read-only (n, 3) vertex array (closing vertex not repeated)."""
        return self._points

    @property
    def point_count(self) -> int:
        return int(len(self._points))

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def length(self) -> float:
        """Total arc length, including the closing segment of a loop."""
        return float(self._cumulative[-1])

    @property
    def cumulative_lengths(self) -> np.ndarray:
        """Arc length at every vertex; for loops the last entry is the full length."""
        return self._cumulative

    @property
    def segment_count(self) -> int:
        return int(len(self._segments))

    @property
    def start(self) -> np.ndarray:
        return self._points[0].copy()

    @property
    def end(self) -> np.ndarray:
        """Position at t = 1 (equal to ``start`` for closed contours)."""
        return self._points[0].copy() if self._closed else self._points[-1].copy()

    def __len__(self) -> int:
        return self.point_count

    def __repr__(self) -> str:
        kind = "closed" if self._closed else "open"
        return f"Contour({self.point_count} points, {kind}, length={self.length:.3f})"

    # ── Evaluation ────────────────────────────────────────────────────

    def _normalize_parameters(self, t: np.ndarray) -> np.ndarray:
        if self._closed:
            return np.mod(t, 1.0)
        if np.any(t < -1e-12) or np.any(t > 1.0 + 1e-12):
            raise ValueError("Open contour parameter must be within [0, 1]")
        return np.clip(t, 0.0, 1.0)

    def evaluate_many(self, parameters: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Evaluate positions and unit tangents at several parameters.

        Args:
            parameters: Normalized arc-length parameters.

        Returns:
            Tuple of (positions, tangents), each an (m, 3) array.
        """
        t = self._normalize_parameters(np.asarray(parameters, dtype=float))
        return self._evaluate_lengths(t * self.length)

    def evaluate(self, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """Evaluate the position and unit tangent at a single parameter."""
        positions, tangents = self.evaluate_many([t])
        return positions[0], tangents[0]

    def point_at_length(self, length: float) -> np.ndarray:
        """Position at an absolute arc length from the start."""
        if self._closed:
            length = length % self.length
        elif length < 0.0 or length > self.length:
            raise ValueError("Length is outside the contour")
        positions, _ = self._evaluate_lengths(np.array([length]))
        return positions[0]

    def _evaluate_lengths(self, s: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        index = np.searchsorted(self._cumulative, s, side="right") - 1
        index = np.clip(index, 0, self.segment_count - 1)

        seg = self._segments[index]
        seg_len = np.diff(self._cumulative)[index]
        local = (s - self._cumulative[index]) / seg_len

        positions = self._points[index] + local[:, None] * seg
        tangents = seg / seg_len[:, None]
        return positions, tangents

    def closest_parameter(self, point: Sequence[float]) -> Tuple[float, np.ndarray]:
        """
        Find the parameter of the closest point on the contour.

        Args:
            point: Query point (x, y, z).

        Returns:
            Tuple of (t, closest position).
        """
        p = np.asarray(point, dtype=float)
        starts = self._points[: self.segment_count]
        seg = self._segments
        seg_sq = np.einsum("ij,ij->i", seg, seg)

        local = np.einsum("ij,ij->i", p - starts, seg) / seg_sq
        local = np.clip(local, 0.0, 1.0)
        candidates = starts + local[:, None] * seg
        distances = np.linalg.norm(candidates - p, axis=1)

        best = int(np.argmin(distances))
        seg_len = float(np.sqrt(seg_sq[best]))
        s = self._cumulative[best] + local[best] * seg_len
        t = float(s / self.length)
        if self._closed:
            t = t % 1.0
        return t, candidates[best]

    # ── Derived contours ──────────────────────────────────────────────

    def reversed(self) -> "Contour":
        """Return the contour traversed in the opposite direction.

        A closed contour keeps its start point.
        """
        if self._closed:
            pts = np.vstack([self._points[:1], self._points[:0:-1]])
        else:
            pts = self._points[::-1]
        return Contour(pts, closed=self._closed, tolerance=self._tolerance)

    def translated(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "Contour":
        """Return a copy moved by the given offset."""
        pts = self._points + np.array([dx, dy, dz], dtype=float)
        return Contour(pts, closed=self._closed, tolerance=self._tolerance)

    def rolled(self, start_index: int) -> "Contour":
        """Return a closed contour whose first vertex is ``start_index``."""
        if not self._closed:
            raise InvalidGeometryError("Only a closed contour can change its start vertex")
        pts = np.roll(self._points, -int(start_index), axis=0)
        return Contour(pts, closed=True, tolerance=self._tolerance)


@dataclass(frozen=True)
class Layer:
    """
    One planar slice of the print.

    Attributes:
        index: Position in the stack (print order).
        contour: Outline printed in this layer.
        height: Absolute height of the layer (mm).
        sampling: Optional sampling policy overriding the sampler default.
    """

    index: int
    contour: Contour
    height: float = 0.0
    sampling: Optional["SamplingPolicy"] = None

    @property
    def closed(self) -> bool:
        return self.contour.closed


def heights_from_layer_height(
    layer_height: float, count: int, start: Optional[float] = None
) -> List[float]:
    """
    Evenly spaced absolute layer heights.

    Args:
        layer_height: Distance between two layers (mm).
        count: Number of layers.
        start: Height of the first layer (defaults to ``layer_height``).
    """
    if layer_height <= 0:
        raise InvalidGeometryError("Layer height must be positive", details={"layer_height": layer_height})
    if count < 1:
        raise InvalidGeometryError("At least one layer is required", details={"count": count})
    first = layer_height if start is None else start
    return [first + i * layer_height for i in range(count)]


def stack_layers(
    base: Contour,
    heights: Sequence[float],
    alternate: bool = False,
    sampling: Optional["SamplingPolicy"] = None,
) -> List[Layer]:
    """
    Build a layer stack by translating one base contour to absolute heights.

    Args:
        base: Contour of the first layer, lying at z = 0.
        heights: Absolute z offset of every layer.
        alternate: Reverse every second layer (zig-zag printing).
        sampling: Sampling override applied to every layer.

    Returns:
        Ordered list of layers.
    """
    if len(heights) == 0:
        raise InvalidGeometryError("A layer stack requires at least one height")

    layers = []
    for i, height in enumerate(heights):
        contour = base.translated(dz=float(height))
        if alternate and i % 2 == 1:
            contour = contour.reversed()
        layers.append(Layer(index=i, contour=contour, height=float(height), sampling=sampling))

    logger.debug("Stacked %d layers (alternate=%s)", len(layers), alternate)
    return layers
