"""
layerpath Post Processor Module

Renders a Program into controller-specific motion program text:
- Sinumerik NC code (linear or BSPLINE interpolation)
- Marlin G-code (linear moves)

Dialects are entries of a capability table (``DIALECTS``); the single
``ProgramEmitter`` renders any of them, with event hooks for customization.
"""

from .base import EmitterConfig, EventHooks, format_number
from .dialects import DIALECTS, Dialect, DialectProfile, Feature, InterpolationMode, get_profile
from .emitter import ProgramEmitter

__all__ = [
    'EmitterConfig',
    'EventHooks',
    'format_number',
    'DIALECTS',
    'Dialect',
    'DialectProfile',
    'Feature',
    'InterpolationMode',
    'get_profile',
    'ProgramEmitter',
]
