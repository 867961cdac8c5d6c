"""
Slicing module - Frame sampling, layer transitions and variable matching.

This module turns a layer stack into an ordered frame sequence:

- SamplingPolicy / FrameSampler: contour discretization by count or distance
- Transition: linear, bezier and interpolated layer-to-layer bridges
- VariableMatcher: per-frame resolution of user variable channels
- analysis: per-frame distances and curvatures usable as channel data
"""

from layerpath.slicing.frames import FrameKind, PathFrame, SamplingMode, SamplingPolicy, make_frame
from layerpath.slicing.transitions import (
    CLOSED_TRANSITIONS,
    OPEN_TRANSITIONS,
    Transition,
    TransitionSettings,
    transition_frames,
)
from layerpath.slicing.sampler import FrameSampler, LayerSpan, SampledPath
from layerpath.slicing.variables import (
    DEFAULT_STRATEGIES,
    MatchResult,
    VariableChannel,
    VariableMatcher,
)
from layerpath.slicing.analysis import (
    curvatures,
    distance_to_previous_layer,
    distances_along_layers,
    distances_along_path,
    path_length,
)

__all__ = [
    # Frames
    "FrameKind",
    "PathFrame",
    "SamplingMode",
    "SamplingPolicy",
    "make_frame",
    # Transitions
    "CLOSED_TRANSITIONS",
    "OPEN_TRANSITIONS",
    "Transition",
    "TransitionSettings",
    "transition_frames",
    # Sampler
    "FrameSampler",
    "LayerSpan",
    "SampledPath",
    # Variables
    "DEFAULT_STRATEGIES",
    "MatchResult",
    "VariableChannel",
    "VariableMatcher",
    # Analysis
    "curvatures",
    "distance_to_previous_layer",
    "distances_along_layers",
    "distances_along_path",
    "path_length",
]
