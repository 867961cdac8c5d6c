"""
Program model - the ordered, immutable list of motion instructions.

Every frame of a sampled path becomes one instruction carrying the values
resolved for it on every variable channel.
"""

from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union, overload

from layerpath.core.exceptions import ChannelLengthMismatchError
from layerpath.slicing.analysis import path_length
from layerpath.slicing.frames import FrameKind, PathFrame
from layerpath.slicing.sampler import SampledPath
from layerpath.slicing.variables import Value, VariableChannel, VariableMatcher


@dataclass(frozen=True)
class MotionInstruction:
    """
    One move of the program.

    Attributes:
        frame: Target frame of the move.
        index: Global position in the program.
        variables: Read-only prefix -> value mapping.
    """

    frame: PathFrame
    index: int
    variables: Mapping[str, Value]

    @property
    def layer_index(self) -> int:
        return self.frame.layer_index

    @property
    def kind(self) -> FrameKind:
        return self.frame.kind

    @property
    def is_transition(self) -> bool:
        return self.frame.is_transition

    @property
    def position(self) -> Tuple[float, float, float]:
        return self.frame.origin


class Program(SequenceABC):
    """
    Ordered sequence of motion instructions built from a sampled path.

    Args:
        path: Sampled frame sequence.
        resolved: Per-frame values for each channel prefix.

    Raises:
        ChannelLengthMismatchError: If a resolved sequence is not exactly as
            long as the frame sequence.
    """

    __slots__ = ("_path", "_prefixes", "_instructions")

    def __init__(self, path: SampledPath, resolved: Mapping[str, Sequence[Value]]) -> None:
        for prefix, values in resolved.items():
            if len(values) != path.total:
                raise ChannelLengthMismatchError(
                    f"Channel '{prefix}' has {len(values)} values for {path.total} frames",
                    prefix=prefix,
                    details={"values": len(values), "frames": path.total},
                )

        prefixes = tuple(resolved)
        instructions = []
        for i, frame in enumerate(path.frames):
            variables: Dict[str, Value] = {prefix: resolved[prefix][i] for prefix in prefixes}
            instructions.append(
                MotionInstruction(frame=frame, index=i, variables=MappingProxyType(variables))
            )

        self._path = path
        self._prefixes = prefixes
        self._instructions: Tuple[MotionInstruction, ...] = tuple(instructions)

    @classmethod
    def from_path(cls, path: SampledPath, resolved: Mapping[str, Sequence[Value]]) -> "Program":
        return cls(path, resolved)

    @classmethod
    def build(
        cls,
        path: SampledPath,
        channels: Sequence[VariableChannel] = (),
        matcher: Optional[VariableMatcher] = None,
        transition_channels: Optional[Mapping[str, VariableChannel]] = None,
    ) -> "Program":
        """Resolve ``channels`` against ``path`` and build the program."""
        matcher = matcher or VariableMatcher()
        resolved = matcher.resolve_all(channels, path, transition_channels)
        return cls(path, resolved)

    # ── Sequence protocol ─────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._instructions)

    @overload
    def __getitem__(self, index: int) -> MotionInstruction: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[MotionInstruction, ...]: ...

    def __getitem__(self, index: Union[int, slice]):
        return self._instructions[index]

    def __iter__(self) -> Iterator[MotionInstruction]:
        return iter(self._instructions)

    def __repr__(self) -> str:
        return (
            f"Program({len(self)} instructions, {self.layer_count} layers, "
            f"prefixes={list(self._prefixes)})"
        )

    # ── Accessors ─────────────────────────────────────────────────────

    @property
    def path(self) -> SampledPath:
        return self._path

    @property
    def prefixes(self) -> Tuple[str, ...]:
        return self._prefixes

    @property
    def layer_count(self) -> int:
        return self._path.layer_count

    def layer(self, layer_index: int) -> Tuple[MotionInstruction, ...]:
        """Instructions of one layer, its trailing transition included."""
        span = self._path.spans[layer_index]
        return self._instructions[span.start : span.transition_stop]

    def layers(self) -> Iterator[Tuple[int, Tuple[MotionInstruction, ...]]]:
        for span in self._path.spans:
            yield span.layer_index, self.layer(span.layer_index)

    def values(self, prefix: str) -> Tuple[Value, ...]:
        """All values of one channel, in instruction order."""
        if prefix not in self._prefixes:
            raise KeyError(prefix)
        return tuple(instruction.variables[prefix] for instruction in self._instructions)

    def length(self) -> float:
        """Travel length through all frames (mm)."""
        return path_length(self._path)
