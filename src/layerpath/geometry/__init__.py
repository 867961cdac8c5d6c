"""
Geometry module - Layer contours, seams and mesh sectioning.

Provides the immutable Contour/Layer model, stack builders, seam placement
for closed contours, and contour extraction from triangle meshes.
"""

from layerpath.geometry.contour import (
    Contour,
    Layer,
    heights_from_layer_height,
    stack_layers,
)
from layerpath.geometry.seams import align_seams, seam_at_closest_point, seam_at_length
from layerpath.geometry.mesh import contours_from_mesh, layers_from_mesh

__all__ = [
    "Contour",
    "Layer",
    "heights_from_layer_height",
    "stack_layers",
    "align_seams",
    "seam_at_closest_point",
    "seam_at_length",
    "contours_from_mesh",
    "layers_from_mesh",
]
