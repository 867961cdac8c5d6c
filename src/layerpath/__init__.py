"""
layerpath - Toolpath generation for layer-based printing

Converts stacks of planar layer contours into oriented motion frames, attaches
per-frame process variables and emits Sinumerik or Marlin motion programs.
"""

__version__ = "0.1.0"
__author__ = "layerpath Contributors"

from layerpath.core.config import ConfigManager

__all__ = [
    "__version__",
    "ConfigManager",
]
