"""
ProgramEmitter - render a Program as dialect-specific motion program text.

Program layout:

    banner
    settings block     (dialect header, interpolation, temperatures, feed)
    object header      (; NAME - N LAYERS - L METER)
    per layer:
        ; LAYER k
        contour moves
        ; TRANSITION
        transition moves
    footer
"""

from typing import Dict, List, Optional, Union

from layerpath import __version__
from layerpath.core.exceptions import UnsupportedDialectFeatureError
from layerpath.core.logging import get_logger
from layerpath.postprocessor.base import EmitterConfig, expand_hook, format_number
from layerpath.postprocessor.dialects import (
    Dialect,
    DialectProfile,
    Feature,
    InterpolationMode,
    get_profile,
)
from layerpath.program.model import MotionInstruction, Program
from layerpath.slicing.variables import Value

logger = get_logger(__name__)

RULE = "-" * 70


class ProgramEmitter:
    """
    Emit motion programs for any dialect in the capability table.

    Example:
        >>> emitter = ProgramEmitter(EmitterConfig(program_name="VASE"))
        >>> text = emitter.emit(program, Dialect.SINUMERIK, InterpolationMode.SPLINE)
    """

    def __init__(self, config: Optional[EmitterConfig] = None):
        self.config = config or EmitterConfig()

    # ── Public API ────────────────────────────────────────────────────

    def emit(
        self,
        program: Program,
        dialect: Union[Dialect, str],
        mode: Union[InterpolationMode, str] = InterpolationMode.LINEAR,
    ) -> str:
        """
        Render ``program`` in the given dialect and interpolation mode.

        Spline requests on a dialect without spline support fall back to
        linear moves with a warning.

        Raises:
            UnsupportedDialectFeatureError: If the mode is unknown or cannot be
                expressed by the dialect, or the configuration requests a
                feature the dialect cannot express.
        """
        profile = get_profile(dialect)
        mode = self._resolve_mode(profile, mode)
        self._check_features(profile)

        lines: List[str] = []
        lines.extend(self._banner(profile))
        lines.extend(self._settings(profile, mode))
        lines.extend(self._object_header(program, profile))
        lines.extend(expand_hook(self.config.hooks.program_start, self._program_vars(program)))
        lines.extend(self._body(program, profile, mode))
        lines.extend(expand_hook(self.config.hooks.program_end, self._program_vars(program)))
        lines.extend(self._footer(profile))

        logger.info(
            "program_emitted",
            dialect=profile.dialect.value,
            mode=mode.value,
            instructions=len(program),
            lines=len(lines),
        )
        ending = self.config.line_ending
        return ending.join(lines) + ending

    # ── Capability checks ─────────────────────────────────────────────

    def _resolve_mode(
        self, profile: DialectProfile, mode: Union[InterpolationMode, str]
    ) -> InterpolationMode:
        try:
            mode = InterpolationMode(mode)
        except ValueError:
            raise UnsupportedDialectFeatureError(
                f"Unknown interpolation mode: {mode}",
                dialect=profile.dialect.value,
                feature=str(mode),
                details={"available": [m.value for m in InterpolationMode]},
            )
        if profile.supports(mode):
            return mode
        # Only spline degrades, and only to linear
        if mode is not InterpolationMode.SPLINE or not profile.supports(InterpolationMode.LINEAR):
            raise UnsupportedDialectFeatureError(
                f"{profile.label} does not support {mode.value} interpolation",
                dialect=profile.dialect.value,
                feature=mode.value,
            )
        logger.warning(
            "spline_fallback",
            dialect=profile.dialect.value,
            requested=mode.value,
            used=InterpolationMode.LINEAR.value,
        )
        return InterpolationMode.LINEAR

    def _check_features(self, profile: DialectProfile) -> None:
        requested = []
        if self.config.tangential_control:
            requested.append(Feature.TANGENTIAL_CONTROL)
        if self.config.uses_temperatures:
            requested.append(Feature.TEMPERATURE)
        if self.config.feed_rate is not None:
            requested.append(Feature.FEED_RATE)

        for feature in requested:
            if not profile.has_feature(feature):
                raise UnsupportedDialectFeatureError(
                    f"{profile.label} does not support {feature.value.replace('_', ' ')}",
                    dialect=profile.dialect.value,
                    feature=feature.value,
                )

    def _precision(self, profile: DialectProfile) -> int:
        return profile.precision if self.config.precision is None else self.config.precision

    # ── Program blocks ────────────────────────────────────────────────

    def _section(self, profile: DialectProfile, title: str) -> List[str]:
        return [profile.comment(RULE), profile.comment(title), profile.comment(RULE)]

    def _banner(self, profile: DialectProfile) -> List[str]:
        return self._section(
            profile, f"{self.config.program_name} - generated by layerpath v{__version__}"
        ) + [""]

    def _settings(self, profile: DialectProfile, mode: InterpolationMode) -> List[str]:
        lines = self._section(profile, "PRINTER SETTINGS")
        lines.append(profile.comment(f"G-Code flavor: {profile.label}"))
        lines.extend(profile.header)

        if self.config.tangential_control:
            lines.extend(profile.tangential_setup)
        if mode is InterpolationMode.SPLINE:
            lines.extend(profile.spline_preamble)
        if self.config.uses_temperatures:
            lines.extend(self._temperature_block(profile))
        if self.config.feed_rate is not None:
            lines.append(f"{profile.feed_command}{format_number(self.config.feed_rate, self._precision(profile))}")

        lines.append("")
        return lines

    def _temperature_block(self, profile: DialectProfile) -> List[str]:
        hotend, bed = self.config.hotend_temperature, self.config.bed_temperature
        lines = ["G91; Relative coordinates", "G1 Z10; Move off printbed"]
        if hotend is not None:
            lines.append(f"M104 S{format_number(hotend, 1)}; Set hotend temperature")
        if bed is not None:
            lines.append(f"M140 S{format_number(bed, 1)}; Set bed temperature")
        lines.append("M105; Report temperature")
        if hotend is not None:
            lines.append(f"M109 S{format_number(hotend, 1)}; Wait for hotend temperature")
        if bed is not None:
            lines.append(f"M190 S{format_number(bed, 1)}; Wait for bed temperature")
        lines.extend(["G1 Z-10; Move back to original position", "G90; Absolute coordinates"])
        return lines

    def _object_header(self, program: Program, profile: DialectProfile) -> List[str]:
        meters = format_number(program.length() / 1000.0, 3)
        title = f"{self.config.object_name} - {program.layer_count} LAYERS - {meters} METER"
        return self._section(profile, title) + [""]

    def _footer(self, profile: DialectProfile) -> List[str]:
        lines = [""]
        lines.extend(profile.footer)
        if self.config.uses_temperatures:
            if self.config.hotend_temperature is not None:
                lines.extend(["M104 S0; Set hotend temperature to 0", "M105; Report temperature"])
            if self.config.bed_temperature is not None:
                lines.extend(["M140 S0; Set bed temperature to 0", "M105; Report temperature"])
        lines.extend(profile.closing)
        return lines

    # ── Motion ────────────────────────────────────────────────────────

    def _program_vars(self, program: Program) -> Dict[str, str]:
        return {"layerCount": str(program.layer_count)}

    def _layer_vars(self, program: Program, layer_index: int, count: int) -> Dict[str, str]:
        return {
            "layerIndex": str(layer_index),
            "layerNumber": str(layer_index + 1),
            "frameCount": str(count),
            "layerCount": str(program.layer_count),
        }

    def _body(self, program: Program, profile: DialectProfile, mode: InterpolationMode) -> List[str]:
        lines: List[str] = []
        state: Dict[str, Value] = {}
        precision = self._precision(profile)
        tangential = self.config.tangential_control

        for layer_index, instructions in program.layers():
            hook_vars = self._layer_vars(program, layer_index, len(instructions))
            lines.append(profile.comment(f"LAYER {layer_index + 1}"))
            lines.extend(expand_hook(self.config.hooks.layer_start, hook_vars))

            in_transition = False
            for position, instruction in enumerate(instructions):
                if instruction.is_transition and not in_transition:
                    lines.append(profile.comment("TRANSITION"))
                    in_transition = True

                reorient = tangential and layer_index > 0 and position == 0
                if reorient:
                    if mode is InterpolationMode.SPLINE:
                        lines.append(profile.linear_move)
                    lines.extend(profile.tangential_suspend)

                lines.extend(self._state_lines(instruction, profile, state, precision))
                lines.append(self._move_line(instruction, profile, mode, precision))

                if reorient:
                    lines.extend(profile.tangential_resume)
                    if mode is InterpolationMode.SPLINE:
                        lines.extend(profile.spline_preamble)

            lines.extend(expand_hook(self.config.hooks.layer_end, hook_vars))
        return lines

    def _state_lines(
        self,
        instruction: MotionInstruction,
        profile: DialectProfile,
        state: Dict[str, Value],
        precision: int,
    ) -> List[str]:
        """Separate lines for channels that cannot ride on a move, on change only."""
        lines = []
        for prefix, value in instruction.variables.items():
            if profile.is_inline(prefix):
                continue
            if prefix in state and state[prefix] == value:
                continue
            state[prefix] = value
            lines.append(f"{prefix}{format_number(value, precision)}")
        return lines

    def _move_line(
        self,
        instruction: MotionInstruction,
        profile: DialectProfile,
        mode: InterpolationMode,
        precision: int,
    ) -> str:
        words = [profile.linear_move] if mode is InterpolationMode.LINEAR else []
        for letter, coordinate in zip(profile.axis_letters, instruction.position):
            words.append(f"{letter}{format_number(coordinate, precision)}")
        for prefix, value in instruction.variables.items():
            if profile.is_inline(prefix):
                words.append(f"{prefix}{format_number(value, precision)}")
        return " ".join(words)
