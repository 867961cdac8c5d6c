"""
Pytest configuration and shared fixtures.
"""

import re
import tempfile
from pathlib import Path

import pytest
import structlog
from structlog.testing import LogCapture

from layerpath.geometry.contour import Contour, Layer, stack_layers
from layerpath.slicing.frames import SamplingPolicy

SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]

MOVE_RE = re.compile(r"^(?:G1 )?X(?P<x>-?[\d.]+) Y(?P<y>-?[\d.]+) Z(?P<z>-?[\d.]+)(?P<rest>.*)$")


def parse_moves(text):
    """Parse emitted move lines into (x, y, z, {word: value}) tuples."""
    moves = []
    for line in text.splitlines():
        match = MOVE_RE.match(line)
        if not match:
            continue
        words = {}
        for word in match.group("rest").split():
            words[word[0]] = word[1:]
        moves.append(
            (float(match.group("x")), float(match.group("y")), float(match.group("z")), words)
        )
    return moves


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def log_events():
    """Capture structlog events, with context-bound values merged in."""
    capture = LogCapture()
    structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
    yield capture.entries
    structlog.reset_defaults()


@pytest.fixture
def square_contour():
    """Closed 10 x 10 square (length 40) at z = 0."""
    return Contour(SQUARE, closed=True)


@pytest.fixture
def open_line():
    """Open straight stroke of length 10 along X."""
    return Contour([(0.0, 0.0), (10.0, 0.0)], closed=False)


@pytest.fixture
def open_layers_3_2(open_line):
    """Two open layers sampled with 3 and 2 frames."""
    return [
        Layer(index=0, contour=open_line.translated(dz=1.0), height=1.0, sampling=SamplingPolicy.by_count(3)),
        Layer(index=1, contour=open_line.translated(dz=2.0), height=2.0, sampling=SamplingPolicy.by_count(2)),
    ]


@pytest.fixture
def closed_stack(square_contour):
    """Four closed square layers, 1 mm apart."""
    return stack_layers(square_contour, [1.0, 2.0, 3.0, 4.0])


@pytest.fixture
def sample_config_dir(temp_dir):
    """Create a sample configuration directory structure."""
    config_dir = temp_dir / "config"
    (config_dir / "jobs").mkdir(parents=True)
    (config_dir / "printers").mkdir(parents=True)

    printer_config = """
printer:
  name: "Test Sinumerik"
  dialect: Sinumerik
  interpolation: spline
  feed_rate: 3000

hooks:
  layer_start: "; START {layerNumber}"
"""
    (config_dir / "printers" / "nc.yaml").write_text(printer_config)

    marlin_config = """
printer:
  name: "Test Marlin"
  dialect: marlin

temperatures:
  hotend: 200
  bed: 55
"""
    (config_dir / "printers" / "fdm.yaml").write_text(marlin_config)

    job_config = """
job:
  name: square
  printer: nc

contour:
  points: [[0, 0], [10, 0], [10, 10], [0, 10]]
  closed: true
  layer_height: 1.0
  layers: 3

sampling:
  mode: count
  count: 8

transition:
  type: interpolated
  count: 2
  seam_step: 3

channels:
  - prefix: "E"
    values: [[1.0, 2.0]]
"""
    (config_dir / "jobs" / "square.yaml").write_text(job_config)

    return config_dir
