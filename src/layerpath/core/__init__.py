"""
Core module - Shared exceptions, logging and configuration.
"""

from layerpath.core.config import (
    ConfigManager,
    JobConfig,
    PrinterConfig,
    load_job,
    load_printer,
)
from layerpath.core.exceptions import (
    LayerPathError,
    ConfigurationError,
    UnsupportedTransitionError,
    InvalidGeometryError,
    ChannelLengthMismatchError,
    UnsupportedDialectFeatureError,
)

__all__ = [
    # Config
    "ConfigManager",
    "JobConfig",
    "PrinterConfig",
    "load_job",
    "load_printer",
    # Exceptions
    "LayerPathError",
    "ConfigurationError",
    "UnsupportedTransitionError",
    "InvalidGeometryError",
    "ChannelLengthMismatchError",
    "UnsupportedDialectFeatureError",
]
