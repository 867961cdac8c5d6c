"""
Path analysis helpers.

Each helper returns one inner list per layer with one value per contour
frame, so the result can be used directly as variable channel data (for
example to scale extrusion with the gap to the layer below).
"""

from typing import List

import numpy as np

from layerpath.slicing.sampler import SampledPath


def _positions(frames) -> np.ndarray:
    return np.array([frame.origin for frame in frames], dtype=float).reshape(-1, 3)


def distances_along_layers(path: SampledPath) -> List[List[float]]:
    """Cumulative distance from the first frame of each layer."""
    result = []
    for frames in path.frames_by_layer:
        pts = _positions(frames)
        steps = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        result.append(np.concatenate([[0.0], np.cumsum(steps)]).tolist())
    return result


def distances_along_path(path: SampledPath) -> List[List[float]]:
    """
    Cumulative distance from the very first frame of the path.

    Transition frames contribute to the distance but receive no entry.
    """
    pts = _positions(path.frames)
    steps = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(steps)])
    return [cumulative[span.start : span.stop].tolist() for span in path.spans]


def distance_to_previous_layer(path: SampledPath, base_z: float = 0.0) -> List[List[float]]:
    """
    Distance from every contour frame to the contour of the layer below.

    Frames of the first layer measure their height above ``base_z``.
    """
    result = []
    for span, frames in zip(path.spans, path.frames_by_layer):
        if span.layer_index == 0:
            result.append([abs(frame.origin[2] - base_z) for frame in frames])
            continue
        below = path.layers[span.layer_index - 1].contour
        row = []
        for frame in frames:
            _, closest = below.closest_parameter(frame.origin)
            row.append(float(np.linalg.norm(np.asarray(frame.origin) - closest)))
        result.append(row)
    return result


def path_length(path: SampledPath) -> float:
    """Length of the polyline through all frames, transitions included."""
    pts = _positions(path.frames)
    if len(pts) < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(pts, axis=0), axis=1).sum())


def _menger_curvature(before: np.ndarray, at: np.ndarray, after: np.ndarray) -> np.ndarray:
    """Inverse radius of the circle through three points (0 when collinear)."""
    incoming = at - before
    outgoing = after - at
    chord = after - before
    area2 = np.linalg.norm(np.cross(incoming, outgoing), axis=1)
    sides = (
        np.linalg.norm(incoming, axis=1)
        * np.linalg.norm(outgoing, axis=1)
        * np.linalg.norm(chord, axis=1)
    )
    return np.where(sides > 1e-12, 2.0 * area2 / np.where(sides > 1e-12, sides, 1.0), 0.0)


def curvatures(path: SampledPath) -> List[List[float]]:
    """
    Curvature (1 / radius) of the path at every contour frame.

    Each value is taken from the circle through the frame and its two
    neighbours in the same layer. Closed layers wrap around the seam; the end
    frames of open layers get 0.
    """
    result = []
    for span, frames in zip(path.spans, path.frames_by_layer):
        pts = _positions(frames)
        values = np.zeros(len(pts))
        if len(pts) >= 3:
            if path.layers[span.layer_index].contour.closed:
                values = _menger_curvature(np.roll(pts, 1, axis=0), pts, np.roll(pts, -1, axis=0))
            else:
                values[1:-1] = _menger_curvature(pts[:-2], pts[1:-1], pts[2:])
        result.append(values.tolist())
    return result
