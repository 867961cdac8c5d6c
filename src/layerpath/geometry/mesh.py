"""
Mesh contour extraction.

Intersects a closed triangle mesh with horizontal planes to obtain one closed
contour per layer, ready to be fed into the frame sampler.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
import trimesh

from layerpath.core.exceptions import ConfigurationError, InvalidGeometryError
from layerpath.geometry.contour import Contour, Layer

logger = logging.getLogger(__name__)

# Safety limit when stepping by layer height until the section is empty
MAX_LAYERS = 100_000


def _longest_loop(mesh: trimesh.Trimesh, z_height: float) -> Optional[Contour]:
    """Section the mesh at ``z_height`` and return the longest closed loop."""
    section = mesh.section(plane_origin=[0, 0, z_height], plane_normal=[0, 0, 1])
    if section is None:
        return None

    best: Optional[Contour] = None
    for polyline in section.discrete:
        vertices = np.asarray(polyline, dtype=float)
        if len(vertices) < 3 or not np.allclose(vertices[0], vertices[-1]):
            continue
        try:
            contour = Contour(vertices, closed=True)
        except InvalidGeometryError:
            logger.debug(f"Skipping degenerate loop at z={z_height:.3f}")
            continue
        if best is None or contour.length > best.length:
            best = contour
    return best


def contours_from_mesh(
    mesh: trimesh.Trimesh,
    layer_height: Optional[float] = None,
    heights: Optional[Sequence[float]] = None,
) -> List[Contour]:
    """
    Slice a mesh into one closed contour per layer.

    Heights are measured from the lowest point of the mesh. With
    ``layer_height`` the mesh is cut in the middle of every layer
    (``zmin + (i + 0.5) * layer_height``) until a section comes back empty.
    With ``heights`` the mesh is cut at ``zmin + h`` for every given value and
    empty sections are skipped.

    Args:
        mesh: Closed triangle mesh.
        layer_height: Distance between two layers (mm).
        heights: Explicit cut heights relative to the mesh bottom.

    Returns:
        Contours ordered from bottom to top.

    Raises:
        ConfigurationError: If not exactly one of ``layer_height`` and
            ``heights`` is given.
        InvalidGeometryError: If no section produced a contour.
    """
    if (layer_height is None) == (heights is None):
        raise ConfigurationError("Specify exactly one of layer_height or heights")

    zmin, zmax = float(mesh.bounds[0][2]), float(mesh.bounds[1][2])
    contours: List[Contour] = []

    if heights is not None:
        for h in heights:
            contour = _longest_loop(mesh, zmin + float(h))
            if contour is None:
                logger.debug(f"No section at relative height {h:.3f}")
                continue
            contours.append(contour)
    else:
        if layer_height <= 0:
            raise ConfigurationError(
                "Layer height must be positive", details={"layer_height": layer_height}
            )
        for i in range(MAX_LAYERS):
            z_height = zmin + (i + 0.5) * layer_height
            if z_height > zmax:
                break
            contour = _longest_loop(mesh, z_height)
            if contour is None:
                break
            contours.append(contour)

    if not contours:
        raise InvalidGeometryError(
            "Mesh produced no closed sections",
            details={"zmin": zmin, "zmax": zmax},
        )

    logger.info(f"Extracted {len(contours)} contours from mesh")
    return contours


def layers_from_mesh(
    mesh: trimesh.Trimesh,
    layer_height: Optional[float] = None,
    heights: Optional[Sequence[float]] = None,
) -> List[Layer]:
    """Slice a mesh and wrap the contours into an ordered layer stack."""
    contours = contours_from_mesh(mesh, layer_height=layer_height, heights=heights)
    return [
        Layer(index=i, contour=contour, height=float(contour.start[2]))
        for i, contour in enumerate(contours)
    ]
