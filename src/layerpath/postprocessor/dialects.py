"""
Dialect capability table.

Each target controller is described by one ``DialectProfile`` entry in
``DIALECTS``: its comment style, axis words, number precision, supported
interpolation modes and features, and the fixed program blocks. Adding a
dialect means adding a table entry; the emitter itself does not branch on the
dialect.

Supported dialects:
- Sinumerik (Siemens NC): linear and BSPLINE interpolation, tangential
  C-axis control
- Marlin (RepRap G-code): linear moves, hot-end and bed temperatures
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Union

from layerpath.core.exceptions import UnsupportedDialectFeatureError


class _CaseInsensitiveEnum(Enum):
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


class Dialect(_CaseInsensitiveEnum):
    """Target controller vocabulary."""

    SINUMERIK = "sinumerik"
    MARLIN = "marlin"


class InterpolationMode(_CaseInsensitiveEnum):
    """How consecutive frames are connected."""

    SPLINE = "spline"
    LINEAR = "linear"


class Feature(_CaseInsensitiveEnum):
    """Optional program features a dialect may support."""

    TANGENTIAL_CONTROL = "tangential_control"
    TEMPERATURE = "temperature"
    FEED_RATE = "feed_rate"


@dataclass(frozen=True)
class DialectProfile:
    """
    Capabilities and fixed text blocks of one dialect.

    Attributes:
        dialect: Dialect this profile describes.
        label: Human readable name used in the program header.
        modes: Supported interpolation modes.
        features: Supported optional features.
        header: Lines opening the settings block.
        footer: Lines closing the program.
        closing: Last lines, after temperatures are switched off.
        comment_prefix: Prefix of comment lines.
        axis_letters: Words for the x, y and z coordinates.
        precision: Default number of decimals.
        linear_move: Word starting a linear move.
        spline_preamble: Lines switching the controller to spline mode.
        feed_command: Word(s) in front of the program feed rate.
        tangential_setup: Lines coupling the rotary axis to the path tangent.
        tangential_suspend: Lines before the first move of a new layer.
        tangential_resume: Lines after the first move of a new layer.
        inline_words: Channel prefixes that may ride on a move line
            (``None`` = every prefix). Other prefixes are emitted as separate
            lines whenever their value changes.
    """

    dialect: Dialect
    label: str
    modes: FrozenSet[InterpolationMode]
    features: FrozenSet[Feature]
    header: Tuple[str, ...]
    footer: Tuple[str, ...]
    comment_prefix: str = "; "
    axis_letters: Tuple[str, str, str] = ("X", "Y", "Z")
    precision: int = 3
    linear_move: str = "G1"
    spline_preamble: Tuple[str, ...] = ()
    closing: Tuple[str, ...] = ()
    feed_command: str = "F"
    tangential_setup: Tuple[str, ...] = ()
    tangential_suspend: Tuple[str, ...] = ()
    tangential_resume: Tuple[str, ...] = ()
    inline_words: Optional[FrozenSet[str]] = None

    def supports(self, mode: InterpolationMode) -> bool:
        return mode in self.modes

    def has_feature(self, feature: Feature) -> bool:
        return feature in self.features

    def is_inline(self, prefix: str) -> bool:
        return self.inline_words is None or prefix in self.inline_words

    def comment(self, text: str) -> str:
        return f"{self.comment_prefix}{text}"


SINUMERIK = DialectProfile(
    dialect=Dialect.SINUMERIK,
    label="Sinumerik",
    modes=frozenset({InterpolationMode.LINEAR, InterpolationMode.SPLINE}),
    features=frozenset({Feature.TANGENTIAL_CONTROL, Feature.FEED_RATE}),
    header=(
        "G500; Zero frame",
        "SPCON; Position-controlled spindle ON",
        "G90; Absolute coordinates",
    ),
    footer=("M30",),
    spline_preamble=(
        "BSPLINE; Bspline interpolation",
        "G642; Continuous-path mode with smoothing within the defined tolerances",
    ),
    tangential_setup=(
        "TANG(C, X, Y, 1); Couple the C-axis to the X/Y path tangent",
        "TANGON(C, 0)",
    ),
    tangential_suspend=("TANGOF(C)",),
    tangential_resume=("TANGON(C, 0)",),
)

MARLIN = DialectProfile(
    dialect=Dialect.MARLIN,
    label="Marlin",
    modes=frozenset({InterpolationMode.LINEAR}),
    features=frozenset({Feature.TEMPERATURE, Feature.FEED_RATE}),
    header=(
        "M106; Turn on fans",
        "M82; Absolute extrusion mode",
        "G90; Absolute coordinates",
        "G28; Move home",
        "G92 E0; Set current extruder position as 0",
    ),
    footer=(
        "G91; Relative coordinates",
        "G1 Z10 E-2; Move off object and retract extrusion material",
        "G90; Absolute coordinates",
        "G1 X0 Y0; Move home",
    ),
    closing=("M106 S0; Turn off fan",),
    feed_command="G1 F",
    inline_words=frozenset({"E", "F", "S"}),
)

DIALECTS: Dict[Dialect, DialectProfile] = {
    Dialect.SINUMERIK: SINUMERIK,
    Dialect.MARLIN: MARLIN,
}


def get_profile(dialect: Union[Dialect, str]) -> DialectProfile:
    """
    Look up the profile of a dialect.

    Raises:
        UnsupportedDialectFeatureError: For an unknown dialect.
    """
    try:
        key = Dialect(dialect)
    except ValueError:
        raise UnsupportedDialectFeatureError(
            f"Unknown dialect: {dialect}",
            dialect=str(dialect),
            details={"available": [d.value for d in DIALECTS]},
        )
    if key not in DIALECTS:
        raise UnsupportedDialectFeatureError(f"No profile for dialect: {key.value}", dialect=key.value)
    return DIALECTS[key]
