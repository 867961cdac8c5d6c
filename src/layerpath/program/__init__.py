"""
Program module - Immutable motion instruction sequence.
"""

from layerpath.program.model import MotionInstruction, Program

__all__ = [
    "MotionInstruction",
    "Program",
]
