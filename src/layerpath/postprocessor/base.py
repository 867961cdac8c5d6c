"""
Emitter configuration, event hooks and number formatting.

Users can inject custom code at key points in the program through event
hooks (program start/end, layer start/end).

Template variables available in event hooks:
  {layerIndex}  - current layer (0-based)
  {layerNumber} - current layer (1-based, as printed in layer comments)
  {frameCount}  - number of instructions in the current layer
  {layerCount}  - number of layers in the program
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from layerpath.slicing.variables import Value


@dataclass
class EventHooks:
    """
    Customizable code snippets injected at event points.
    Each string may contain template variables like {layerIndex}.
    """
    program_start: str = ""
    program_end: str = ""
    layer_start: str = ""
    layer_end: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EventHooks':
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in d.items() if k in valid_fields})


@dataclass
class EmitterConfig:
    """Configuration for a program emitter instance."""
    program_name: str = "LAYERPATH"
    object_name: str = "2.5D OBJECT"
    line_ending: str = "\n"              # '\n' or '\r\n'

    # Formatting
    precision: Optional[int] = None      # None = dialect default

    # Motion
    feed_rate: Optional[float] = None    # mm/min, emitted once before the first move
    tangential_control: bool = False     # Sinumerik C-axis follows the path tangent

    # Temperatures (°C)
    hotend_temperature: Optional[float] = None
    bed_temperature: Optional[float] = None

    # Event hooks
    hooks: EventHooks = field(default_factory=EventHooks)

    @property
    def uses_temperatures(self) -> bool:
        return self.hotend_temperature is not None or self.bed_temperature is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EmitterConfig':
        d = dict(d)
        hooks_data = d.pop('hooks', {})
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        config = cls(**{k: v for k, v in d.items() if k in valid_fields})
        if hooks_data:
            config.hooks = EventHooks.from_dict(hooks_data)
        return config


def format_number(value: Value, precision: int = 3) -> str:
    """
    Format a value for the program text.

    Numbers get at most ``precision`` decimals with trailing zeros removed
    and never render as negative zero. Strings are returned verbatim.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"

    text = f"{float(value):.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def expand_hook(hook_template: str, template_vars: Optional[Dict[str, Any]] = None) -> List[str]:
    """Expand template variables in a hook string into program lines."""
    if not hook_template.strip():
        return []
    try:
        expanded = hook_template.format(**(template_vars or {}))
    except (KeyError, IndexError):
        expanded = hook_template  # Leave unresolved variables as-is
    return [line for line in expanded.split('\n') if line.strip()]
