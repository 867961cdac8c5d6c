"""
Variable matching - attach user process data to frames.

A variable channel is a named track of values (extrusion rate, temperature,
...) given as a nested list whose structure need not follow the layer
structure of the sampled path. The matcher reconciles it with the per-layer
frame counts so that every frame receives exactly one value.

Strategies are tried in order; the first that returns a result wins:
1. exact      - one inner list per layer, each as long as the layer
2. flat_split - a single list as long as the whole path, split per layer
3. broadcast  - positional alignment, reusing the last layer entry and the
                last value wherever data runs short
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from layerpath.core.exceptions import ConfigurationError
from layerpath.slicing.sampler import SampledPath

logger = logging.getLogger(__name__)

Value = Union[float, int, str]
Nested = List[List[Value]]
MatchStrategy = Callable[[Nested, Sequence[int]], Optional[Nested]]


def _is_scalar(value) -> bool:
    return isinstance(value, (str, bytes)) or not hasattr(value, "__iter__")


def as_nested(values) -> Nested:
    """Normalize channel data to a list of lists; a flat list becomes one entry."""
    values = list(values)
    if values and all(_is_scalar(v) for v in values):
        return [values]
    return [[values_i] if _is_scalar(values_i) else list(values_i) for values_i in values]


@dataclass(frozen=True)
class VariableChannel:
    """
    Named track of raw process values.

    Attributes:
        prefix: Word written in front of every value (``"E"``, ``"M104 S"``).
        values: Nested values, one inner tuple per logical group.
    """

    prefix: str
    values: Tuple[Tuple[Value, ...], ...]

    def __post_init__(self) -> None:
        if not isinstance(self.prefix, str) or not self.prefix:
            raise ConfigurationError("Variable channel prefix must be a non-empty string")
        nested = tuple(tuple(inner) for inner in as_nested(self.values))
        if not any(nested):
            raise ConfigurationError(
                "Variable channel has no values", details={"prefix": self.prefix}
            )
        object.__setattr__(self, "values", nested)

    @classmethod
    def constant(cls, prefix: str, value: Value) -> "VariableChannel":
        return cls(prefix, ((value,),))

    @property
    def value_count(self) -> int:
        return sum(len(inner) for inner in self.values)


# ── Strategies ────────────────────────────────────────────────────────


def match_exact(raw: Nested, counts: Sequence[int]) -> Optional[Nested]:
    """Use the data verbatim when it already has the layer structure."""
    if len(raw) != len(counts):
        return None
    if any(len(inner) != count for inner, count in zip(raw, counts)):
        return None
    return [list(inner) for inner in raw]


def match_flat_split(raw: Nested, counts: Sequence[int]) -> Optional[Nested]:
    """Split a single frame-ordered list into per-layer chunks."""
    if len(raw) != 1 or len(raw[0]) != sum(counts):
        return None
    flat = raw[0]
    result, start = [], 0
    for count in counts:
        result.append(list(flat[start : start + count]))
        start += count
    return result


def match_broadcast(raw: Nested, counts: Sequence[int]) -> Optional[Nested]:
    """
    Align entries to layers positionally and extend short data.

    Layers beyond the last entry reuse it, short entries repeat their last
    value and extra values are ignored. Empty entries count as absent: they
    are replaced by the nearest preceding non-empty entry, or by the first
    non-empty one when none precedes.
    """
    filled = [i for i, inner in enumerate(raw) if len(inner) > 0]
    if not filled:
        return None

    result = []
    for layer, count in enumerate(counts):
        position = min(layer, len(raw) - 1)
        k = bisect.bisect_right(filled, position) - 1
        source = raw[filled[k] if k >= 0 else filled[0]]
        result.append([source[min(j, len(source) - 1)] for j in range(count)])
    return result


DEFAULT_STRATEGIES: Tuple[Tuple[str, MatchStrategy], ...] = (
    ("exact", match_exact),
    ("flat_split", match_flat_split),
    ("broadcast", match_broadcast),
)


@dataclass(frozen=True)
class MatchResult:
    """Values matched to the layer structure and the strategy that produced them."""

    strategy: str
    values: Tuple[Tuple[Value, ...], ...]

    def flatten(self) -> Tuple[Value, ...]:
        return tuple(value for inner in self.values for value in inner)


class VariableMatcher:
    """
    Resolve variable channels against a sampled path.

    Args:
        strategies: Ordered ``(name, strategy)`` pairs. A strategy receives the
            nested raw data and the per-layer counts and returns the matched
            nested list or ``None``.
    """

    def __init__(self, strategies: Sequence[Tuple[str, MatchStrategy]] = DEFAULT_STRATEGIES) -> None:
        self._strategies = tuple(strategies)

    @property
    def strategy_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._strategies)

    def match(self, raw, layer_counts: Sequence[int]) -> MatchResult:
        """
        Match raw channel data to per-layer counts.

        Args:
            raw: Nested (or flat) channel values.
            layer_counts: Number of values needed per layer.

        Returns:
            The matched values, one inner tuple per layer.

        Raises:
            ConfigurationError: If no strategy accepts the data (only possible
                for a channel without any value).
        """
        nested = as_nested(raw)
        counts = list(layer_counts)
        for name, strategy in self._strategies:
            matched = strategy(nested, counts)
            if matched is not None:
                logger.debug(f"Channel matched by '{name}' for {len(counts)} layers")
                return MatchResult(name, tuple(tuple(inner) for inner in matched))

        raise ConfigurationError(
            "No matching strategy accepted the channel data",
            details={"strategies": list(self.strategy_names), "layer_counts": counts},
        )

    def resolve(
        self,
        channel: VariableChannel,
        path: SampledPath,
        transition_channel: Optional[VariableChannel] = None,
    ) -> Tuple[Value, ...]:
        """
        One value per frame of ``path``, in frame order.

        Transition frames take the value of the last contour frame of their
        layer unless ``transition_channel`` supplies values for them.
        """
        contour = self.match(channel.values, path.layer_counts)

        transition: Optional[MatchResult] = None
        if transition_channel is not None and any(path.transition_counts):
            transition = self.match(transition_channel.values, path.transition_counts)

        resolved: List[Value] = []
        for span in path.spans:
            layer_values = contour.values[span.layer_index]
            resolved.extend(layer_values)
            if span.transition_count:
                if transition is not None:
                    resolved.extend(transition.values[span.layer_index])
                else:
                    resolved.extend([layer_values[-1]] * span.transition_count)

        logger.info(
            f"Resolved channel '{channel.prefix}' ({contour.strategy}) to {len(resolved)} values"
        )
        return tuple(resolved)

    def resolve_all(
        self,
        channels: Sequence[VariableChannel],
        path: SampledPath,
        transition_channels: Optional[Mapping[str, VariableChannel]] = None,
    ) -> Dict[str, Tuple[Value, ...]]:
        """Resolve several channels; prefixes must be unique."""
        transition_channels = transition_channels or {}
        resolved: Dict[str, Tuple[Value, ...]] = {}
        for channel in channels:
            if channel.prefix in resolved:
                raise ConfigurationError(
                    "Duplicate variable channel prefix", details={"prefix": channel.prefix}
                )
            resolved[channel.prefix] = self.resolve(
                channel, path, transition_channels.get(channel.prefix)
            )

        unknown = set(transition_channels) - set(resolved)
        if unknown:
            raise ConfigurationError(
                "Transition channel without a matching variable channel",
                details={"prefixes": sorted(unknown)},
            )
        return resolved
