"""
Pipeline orchestrator for end-to-end program generation.

Chains: layers -> frame sampling -> variable matching -> program -> emitted text

Every step is a pure stage of the library; the pipeline only times the
steps, reports progress and logs the step that fails before re-raising.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import trimesh

from layerpath.core.config import ContourConfig, JobConfig, PrinterConfig
from layerpath.core.exceptions import ConfigurationError
from layerpath.core.logging import get_logger, job_context
from layerpath.geometry.contour import Contour, Layer, heights_from_layer_height, stack_layers
from layerpath.geometry.mesh import contours_from_mesh
from layerpath.geometry.seams import align_seams, seam_at_length
from layerpath.postprocessor.base import EmitterConfig, EventHooks
from layerpath.postprocessor.dialects import Dialect, InterpolationMode
from layerpath.postprocessor.emitter import ProgramEmitter
from layerpath.program.model import Program
from layerpath.slicing.frames import SamplingPolicy
from layerpath.slicing.sampler import FrameSampler, SampledPath
from layerpath.slicing.transitions import Transition, TransitionSettings
from layerpath.slicing.variables import VariableChannel, VariableMatcher

logger = get_logger(__name__)


@dataclass
class GenerationJob:
    """Everything needed for a single pipeline run."""

    layers: List[Layer]
    channels: List[VariableChannel] = field(default_factory=list)
    transition_channels: Dict[str, VariableChannel] = field(default_factory=dict)
    sampling: SamplingPolicy = field(default_factory=SamplingPolicy)
    transition: Transition = Transition.LINEAR
    transition_settings: TransitionSettings = field(default_factory=TransitionSettings)
    dialect: Dialect = Dialect.SINUMERIK
    mode: InterpolationMode = InterpolationMode.LINEAR
    emitter: EmitterConfig = field(default_factory=EmitterConfig)
    name: Optional[str] = None


@dataclass
class StepResult:
    """Result of a single pipeline step."""

    name: str
    data: Any = None
    duration_s: float = 0.0


@dataclass
class PipelineResult:
    """Result of a complete pipeline run."""

    text: str = ""
    path: Optional[SampledPath] = None
    program: Optional[Program] = None
    steps: List[StepResult] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)


# Type alias for progress callback: (step_name, fraction 0.0-1.0)
ProgressCallback = Callable[[str, float], None]


def _noop_callback(step: str, pct: float) -> None:
    pass


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


class Pipeline:
    """End-to-end program generation orchestrator.

    Usage:
        pipeline = Pipeline()
        result = pipeline.execute(GenerationJob(layers=layers, channels=[extrusion]))
        Path("out.mpf").write_text(result.text)
    """

    def __init__(
        self,
        matcher: Optional[VariableMatcher] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self._matcher = matcher or VariableMatcher()
        self._progress = progress_callback or _noop_callback

    def execute(self, job: GenerationJob) -> PipelineResult:
        """Execute the full pipeline: sample -> match -> build -> emit.

        Stages fail fast: the first error is logged with its step name and
        propagated unchanged. Every event logged during the run carries the
        job name, dialect and requested mode.
        """
        name = job.name or job.emitter.program_name
        with job_context(name, _label(job.dialect), _label(job.mode)):
            return self._execute(job)

    def _execute(self, job: GenerationJob) -> PipelineResult:
        result = PipelineResult()

        sampler = FrameSampler(job.sampling, job.transition, job.transition_settings)
        path = self._record(result, "sampling", lambda: sampler.sample(job.layers))
        result.path = path

        resolved = self._record(
            result,
            "matching",
            lambda: self._matcher.resolve_all(job.channels, path, job.transition_channels),
        )

        program = self._record(result, "program", lambda: Program.from_path(path, resolved))
        result.program = program

        emitter = ProgramEmitter(job.emitter)
        result.text = self._record(
            result, "emit", lambda: emitter.emit(program, job.dialect, job.mode)
        )
        return result

    def _record(self, result: PipelineResult, name: str, fn: Callable) -> Any:
        step = self._run_step(name, fn)
        result.steps.append(step)
        result.timings[name] = step.duration_s
        return step.data

    def _run_step(self, name: str, fn: Callable) -> StepResult:
        """Execute a single pipeline step with timing and error logging."""
        self._progress(name, 0.0)
        t0 = time.perf_counter()
        try:
            data = fn()
        except Exception as e:
            duration = time.perf_counter() - t0
            logger.error("pipeline_step_failed", step=name, duration_s=round(duration, 3), error=str(e))
            raise
        duration = time.perf_counter() - t0
        self._progress(name, 1.0)
        logger.info("pipeline_step_complete", step=name, duration_s=round(duration, 3))
        return StepResult(name=name, data=data, duration_s=duration)


# ── Building jobs from configuration ──────────────────────────────────


def build_layers(config: ContourConfig, base_dir: Optional[Path] = None) -> List[Layer]:
    """Build the layer stack described by a contour configuration."""
    if config.mesh is not None:
        mesh_path = Path(config.mesh)
        if base_dir is not None and not mesh_path.is_absolute():
            mesh_path = base_dir / mesh_path
        mesh = trimesh.load(mesh_path, force="mesh")
        contours = contours_from_mesh(
            mesh,
            layer_height=None if config.heights else config.layer_height,
            heights=config.heights or None,
        )
        if config.seam is not None:
            contours = [seam_at_length(c, config.seam) for c in contours]
        if config.align_seams:
            contours = align_seams(contours)
        return [
            Layer(index=i, contour=c, height=float(c.start[2])) for i, c in enumerate(contours)
        ]

    if config.interpolate:
        base = Contour.interpolated(config.points, closed=config.closed, samples=config.samples)
    else:
        base = Contour(config.points, closed=config.closed)
    if config.seam is not None:
        base = seam_at_length(base, config.seam)

    heights = config.heights or heights_from_layer_height(config.layer_height, config.layers)
    return stack_layers(base, heights, alternate=config.alternate)


def job_from_config(
    job: JobConfig,
    printer: Optional[PrinterConfig] = None,
    base_dir: Optional[Path] = None,
) -> GenerationJob:
    """
    Translate validated configuration into a GenerationJob.

    Args:
        job: Job configuration.
        printer: Printer configuration (defaults to linear Sinumerik).
        base_dir: Directory relative mesh paths are resolved against.
    """
    try:
        transition = Transition(job.transition.type)
        dialect = Dialect(printer.dialect) if printer else Dialect.SINUMERIK
        mode = InterpolationMode(printer.interpolation) if printer else InterpolationMode.LINEAR
    except ValueError as e:
        raise ConfigurationError("Invalid job configuration", details={"error": str(e)})

    sampling = SamplingPolicy(
        mode=job.sampling.mode,
        count=job.sampling.count,
        distance=job.sampling.distance,
        reduce_straight=job.sampling.reduce_straight,
        keep=job.sampling.keep,
        angle_threshold=job.sampling.angle_threshold,
    )
    settings = TransitionSettings(
        count=job.transition.count,
        tension=job.transition.tension,
        seam_step=job.transition.seam_step,
    )

    channels = [VariableChannel(c.prefix, c.values) for c in job.channels]
    transition_channels = {
        c.prefix: VariableChannel(c.prefix, c.transition_values)
        for c in job.channels
        if c.transition_values is not None
    }

    emitter = EmitterConfig(program_name=job.name.upper(), object_name=(job.object_name or job.name).upper())
    if printer is not None:
        emitter.precision = printer.precision
        emitter.feed_rate = printer.feed_rate
        emitter.hotend_temperature = printer.hotend_temperature
        emitter.bed_temperature = printer.bed_temperature
        emitter.tangential_control = printer.tangential_control
        emitter.hooks = EventHooks.from_dict(printer.hooks)

    return GenerationJob(
        name=job.name,
        layers=build_layers(job.contour, base_dir),
        channels=channels,
        transition_channels=transition_channels,
        sampling=sampling,
        transition=transition,
        transition_settings=settings,
        dialect=dialect,
        mode=mode,
        emitter=emitter,
    )
