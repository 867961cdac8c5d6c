"""
Configuration management for layerpath.

Handles loading, validation, and access to job and printer configurations.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from layerpath.core.exceptions import ConfigurationError

Scalar = float | str


class ContourConfig(BaseModel):
    """Layer stack geometry: a base contour repeated at several heights, or a mesh."""

    points: list[list[float]] | None = None
    mesh: str | None = None
    closed: bool = False
    interpolate: bool = False
    samples: int = Field(default=64, ge=3)
    seam: float | None = Field(default=None, ge=0.0, le=1.0)
    align_seams: bool = False
    heights: list[float] = Field(default_factory=list)
    layer_height: float | None = Field(default=None, gt=0)
    layers: int | None = Field(default=None, ge=1)
    alternate: bool = False

    @model_validator(mode="after")
    def _check_source(self) -> "ContourConfig":
        if (self.points is None) == (self.mesh is None):
            raise ValueError("specify exactly one of 'points' or 'mesh'")
        if self.points is not None:
            if not self.heights and (self.layer_height is None or self.layers is None):
                raise ValueError("specify 'heights' or both 'layer_height' and 'layers'")
        elif not self.heights and self.layer_height is None:
            raise ValueError("mesh slicing needs 'heights' or 'layer_height'")
        return self


class SamplingConfig(BaseModel):
    """Frame sampling policy."""

    mode: Literal["count", "distance"] = "distance"
    count: int = Field(default=10, ge=2)
    distance: float = Field(default=1.0, gt=0)
    reduce_straight: bool = False
    keep: int = Field(default=5, ge=0)
    angle_threshold: float = Field(default=1e-3, ge=0)


class TransitionConfig(BaseModel):
    """Layer-to-layer transition."""

    type: str = "linear"
    count: int = Field(default=8, ge=0)
    tension: float = Field(default=1.0 / 3.0, ge=0)
    seam_step: int = 1

    @field_validator("type")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()


class ChannelConfig(BaseModel):
    """Variable channel: prefix plus nested (or flat) values."""

    prefix: str = Field(min_length=1)
    values: list[list[Scalar]]
    transition_values: list[list[Scalar]] | None = None

    @field_validator("values", "transition_values", mode="before")
    @classmethod
    def _nest(cls, value: Any) -> Any:
        if isinstance(value, list) and value and not any(isinstance(v, list) for v in value):
            return [value]
        if isinstance(value, (int, float, str)):
            return [[value]]
        return value


class PrinterConfig(BaseModel):
    """Printer (controller) configuration model."""

    name: str
    dialect: str = "sinumerik"
    interpolation: str = "linear"
    precision: int | None = Field(default=None, ge=0)
    feed_rate: float | None = Field(default=None, gt=0)
    hotend_temperature: float | None = None
    bed_temperature: float | None = None
    tangential_control: bool = False
    hooks: dict[str, str] = Field(default_factory=dict)

    @field_validator("dialect", "interpolation")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()


class JobConfig(BaseModel):
    """One toolpath generation job."""

    name: str
    printer: str | PrinterConfig | None = None
    object_name: str | None = None
    contour: ContourConfig
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    transition: TransitionConfig = Field(default_factory=TransitionConfig)
    channels: list[ChannelConfig] = Field(default_factory=list)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def _job_from_data(data: dict[str, Any], source: Path) -> JobConfig:
    """Merge the top-level sections of a job file into a JobConfig."""
    if "job" not in data:
        raise ConfigurationError(f"Missing 'job' section: {source}")
    job_data = dict(data["job"])
    for section in ("contour", "sampling", "transition", "channels", "printer"):
        if section in data:
            job_data[section] = data[section]
    return JobConfig(**job_data)


def _printer_from_data(data: dict[str, Any], source: Path) -> PrinterConfig:
    if "printer" not in data:
        raise ConfigurationError(f"Missing 'printer' section: {source}")
    printer_data = dict(data["printer"])
    # Merge with other sections
    if "temperatures" in data:
        temperatures = data["temperatures"] or {}
        printer_data["hotend_temperature"] = temperatures.get("hotend")
        printer_data["bed_temperature"] = temperatures.get("bed")
    if "hooks" in data:
        printer_data["hooks"] = data["hooks"]
    return PrinterConfig(**printer_data)


def load_job(path: str | Path) -> JobConfig:
    """
    Load a single job file.

    Args:
        path: Path to a YAML job file.

    Returns:
        JobConfig instance

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Job file not found: {path}")
    try:
        return _job_from_data(_read_yaml(path), path)
    except (yaml.YAMLError, ValidationError, TypeError) as e:
        raise ConfigurationError(
            f"Failed to load job config: {path}",
            details={"error": str(e)},
        )


def load_printer(path: str | Path) -> PrinterConfig:
    """Load a single printer file."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Printer file not found: {path}")
    try:
        return _printer_from_data(_read_yaml(path), path)
    except (yaml.YAMLError, ValidationError, TypeError) as e:
        raise ConfigurationError(
            f"Failed to load printer config: {path}",
            details={"error": str(e)},
        )


@dataclass
class ConfigManager:
    """
    Central configuration manager for layerpath.

    Loads and validates configurations from YAML files laid out as
    ``<config_dir>/jobs/*.yaml`` and ``<config_dir>/printers/*.yaml``.

    Example:
        >>> config = ConfigManager(config_dir=Path("config"))
        >>> job = config.get_job("vase")
        >>> printer = config.get_printer("sinumerik_spline")
    """

    config_dir: Path
    _jobs: dict[str, JobConfig] = field(default_factory=dict, init=False)
    _printers: dict[str, PrinterConfig] = field(default_factory=dict, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        """Initialize configuration manager."""
        self.config_dir = Path(self.config_dir)
        if not self.config_dir.exists():
            raise ConfigurationError(
                f"Configuration directory not found: {self.config_dir}"
            )

    def load(self) -> None:
        """Load all configurations from disk."""
        self._load_printers()
        self._load_jobs()
        self._loaded = True

    def _load_printers(self) -> None:
        """Load printer configurations."""
        printers_dir = self.config_dir / "printers"
        if not printers_dir.exists():
            return

        for config_file in sorted(printers_dir.glob("*.yaml")):
            self._printers[config_file.stem] = load_printer(config_file)

    def _load_jobs(self) -> None:
        """Load job configurations."""
        jobs_dir = self.config_dir / "jobs"
        if not jobs_dir.exists():
            return

        for config_file in sorted(jobs_dir.glob("*.yaml")):
            self._jobs[config_file.stem] = load_job(config_file)

    def get_job(self, name: str) -> JobConfig:
        """
        Get job configuration by name.

        Args:
            name: Job configuration name (without .yaml extension)

        Returns:
            JobConfig instance

        Raises:
            ConfigurationError: If job not found
        """
        if not self._loaded:
            self.load()

        if name not in self._jobs:
            available = list(self._jobs.keys())
            raise ConfigurationError(
                f"Job configuration not found: {name}",
                details={"available": available},
            )
        return self._jobs[name]

    def get_printer(self, name: str) -> PrinterConfig:
        """
        Get printer configuration by name.

        Args:
            name: Printer configuration name (without .yaml extension)

        Returns:
            PrinterConfig instance

        Raises:
            ConfigurationError: If printer not found
        """
        if not self._loaded:
            self.load()

        if name not in self._printers:
            available = list(self._printers.keys())
            raise ConfigurationError(
                f"Printer configuration not found: {name}",
                details={"available": available},
            )
        return self._printers[name]

    def resolve_printer(self, job: JobConfig) -> PrinterConfig | None:
        """Printer of a job: inline settings, a named printer, or none."""
        if job.printer is None or isinstance(job.printer, PrinterConfig):
            return job.printer
        return self.get_printer(job.printer)

    def list_jobs(self) -> list[str]:
        """List available job configurations."""
        if not self._loaded:
            self.load()
        return list(self._jobs.keys())

    def list_printers(self) -> list[str]:
        """List available printer configurations."""
        if not self._loaded:
            self.load()
        return list(self._printers.keys())
