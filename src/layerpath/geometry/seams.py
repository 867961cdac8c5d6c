"""
Seam placement - choose where a closed contour starts.

The seam is the start/end vertex of a closed layer. Moving it changes where
the print head enters and leaves each layer, which is what the visible seam
line on a printed wall is made of.

Provides 3 placement helpers:
1. at length        - start at a (normalized) arc length along the contour
2. at closest point - start at the contour point nearest to a target
3. aligned          - every layer starts near the previous layer's start
"""

import logging
from typing import List, Sequence

import numpy as np

from layerpath.core.exceptions import InvalidGeometryError
from layerpath.geometry.contour import Contour

logger = logging.getLogger(__name__)


def _require_closed(contour: Contour) -> None:
    if not contour.closed:
        raise InvalidGeometryError("Seam placement requires a closed contour")


def seam_at_length(contour: Contour, length: float, normalized: bool = True) -> Contour:
    """
    Start a closed contour at a given arc length.

    A vertex is inserted at the seam position unless one already lies there.

    Args:
        contour: Closed contour.
        length: Seam position, in ``[0, 1]`` when ``normalized`` and in
            ``[0, contour.length]`` otherwise.
        normalized: Interpret ``length`` as a fraction of the contour length.

    Returns:
        The same loop, starting at the seam.
    """
    _require_closed(contour)

    upper = 1.0 if normalized else contour.length
    if length < 0.0 or length > upper:
        raise InvalidGeometryError(
            "Seam position is outside the contour",
            details={"length": length, "max": upper},
        )

    s = length * contour.length if normalized else length
    if s >= contour.length:
        s = 0.0

    cumulative = contour.cumulative_lengths
    pts = contour.points

    # Seam already on a vertex
    near = np.flatnonzero(np.abs(cumulative[:-1] - s) <= contour.tolerance)
    if near.size:
        return contour.rolled(int(near[0]))

    segment = int(np.searchsorted(cumulative, s, side="right") - 1)
    seam_point = contour.point_at_length(s)
    inserted = np.vstack([pts[: segment + 1], seam_point, pts[segment + 1 :]])
    return Contour(inserted, closed=True, tolerance=contour.tolerance).rolled(segment + 1)


def seam_at_closest_point(contour: Contour, point: Sequence[float]) -> Contour:
    """Start a closed contour at its point closest to ``point``."""
    _require_closed(contour)
    t, _ = contour.closest_parameter(point)
    return seam_at_length(contour, t, normalized=True)


def align_seams(contours: Sequence[Contour]) -> List[Contour]:
    """
    Align the seams of a stack of closed contours.

    The first contour is kept; every following contour starts at its point
    closest to the start of the previous (already aligned) contour.
    """
    aligned: List[Contour] = []
    for contour in contours:
        _require_closed(contour)
        if not aligned:
            aligned.append(contour)
            continue
        aligned.append(seam_at_closest_point(contour, aligned[-1].start))

    logger.debug("Aligned seams of %d contours", len(aligned))
    return aligned
