"""
Tests for the program model.
"""

import pytest

from layerpath.core.exceptions import ChannelLengthMismatchError
from layerpath.program.model import MotionInstruction, Program
from layerpath.slicing.frames import FrameKind
from layerpath.slicing.sampler import FrameSampler
from layerpath.slicing.transitions import Transition, TransitionSettings
from layerpath.slicing.variables import VariableChannel


@pytest.fixture
def bezier_path(open_layers_3_2):
    sampler = FrameSampler(transition=Transition.BEZIER, settings=TransitionSettings(count=2))
    return sampler.sample(open_layers_3_2)


@pytest.mark.unit
class TestProgram:
    """Tests for Program construction and access."""

    def test_one_instruction_per_frame(self, bezier_path):
        """Test that the program mirrors the frame sequence."""
        program = Program.build(bezier_path, [VariableChannel("E", [1, 2, 3, 4, 5])])

        assert len(program) == bezier_path.total == 7
        assert [instr.index for instr in program] == list(range(7))
        assert all(isinstance(instr, MotionInstruction) for instr in program)
        assert program.values("E") == (1, 2, 3, 3, 3, 4, 5)

    def test_instruction_accessors(self, bezier_path):
        program = Program.build(bezier_path, [VariableChannel.constant("F", 1500)])
        instr = program[3]
        assert instr.kind is FrameKind.TRANSITION
        assert instr.is_transition
        assert instr.layer_index == 0
        assert instr.position == bezier_path.frames[3].origin
        assert instr.variables["F"] == 1500

    def test_layer_grouping(self, bezier_path):
        """Test that a layer includes its trailing transition."""
        program = Program.build(bezier_path)
        assert len(program.layer(0)) == 5
        assert len(program.layer(1)) == 2
        assert [idx for idx, _ in program.layers()] == [0, 1]
        assert program.layer_count == 2

    def test_without_channels(self, bezier_path):
        program = Program.build(bezier_path)
        assert program.prefixes == ()
        assert dict(program[0].variables) == {}

    def test_prefix_order_kept(self, bezier_path):
        channels = [VariableChannel.constant("S", 1), VariableChannel.constant("E", 2)]
        assert Program.build(bezier_path, channels).prefixes == ("S", "E")

    def test_length_mismatch(self, bezier_path):
        """Test that resolved sequences must cover every frame."""
        with pytest.raises(ChannelLengthMismatchError) as exc_info:
            Program(bezier_path, {"E": (1, 2, 3)})
        assert exc_info.value.prefix == "E"
        assert exc_info.value.details == {"values": 3, "frames": 7}

    def test_unknown_prefix(self, bezier_path):
        with pytest.raises(KeyError):
            Program.build(bezier_path).values("E")

    def test_immutable(self, bezier_path):
        """Test instructions and their variables cannot be changed."""
        program = Program.build(bezier_path, [VariableChannel.constant("E", 1.0)])
        with pytest.raises(TypeError):
            program[0].variables["E"] = 2.0
        with pytest.raises(AttributeError):
            program[0].index = 5
        with pytest.raises(TypeError):
            program[0] = program[1]

    def test_slicing(self, bezier_path):
        program = Program.build(bezier_path)
        assert len(program[:3]) == 3

    def test_length(self, open_layers_3_2):
        """Test travel length through all frames."""
        path = FrameSampler().sample(open_layers_3_2)
        assert Program.build(path).length() == pytest.approx(20.0 + 101.0 ** 0.5)
