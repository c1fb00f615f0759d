"""Command string parsing into absolute commands."""

import pytest

from conftest import xy
from path_parser import MalformedPathData, PathCommandParser


@pytest.fixture
def parser():
    return PathCommandParser()


def test_absolute_lines(parser):
    commands = parser.parse("M0,0 L10,0 L10,10")
    assert [c.command for c in commands] == ['M', 'L', 'L']
    assert xy(commands[1].start) == (0, 0)
    assert xy(commands[2].end) == (10, 10)


def test_relative_commands_resolve_against_current_point(parser):
    commands = parser.parse("M10 20 l5 5 h-5 v10")
    assert xy(commands[1].end) == (15, 25)
    assert xy(commands[2].end) == (10, 25)
    assert xy(commands[3].end) == (10, 35)


def test_implicit_lineto_after_moveto(parser):
    commands = parser.parse("m1 1 2 2 3 0")
    assert [c.command for c in commands] == ['M', 'L', 'L']
    assert xy(commands[1].end) == (3, 3)
    assert xy(commands[2].end) == (6, 3)


def test_closepath_returns_to_subpath_start(parser):
    commands = parser.parse("M5,5 H15 V15 Z")
    closing = commands[-1]
    assert closing.command == 'Z'
    assert xy(closing.start) == (15, 15)
    assert xy(closing.end) == (5, 5)


def test_compact_number_syntax(parser):
    commands = parser.parse("M0-5L.5.5 1e1,2E0")
    assert xy(commands[0].end) == (0, -5)
    assert xy(commands[1].end) == (0.5, 0.5)
    assert xy(commands[2].end) == (10, 2)


def test_smooth_cubic_reflects_previous_control(parser):
    commands = parser.parse("M0,0 C0,10 10,10 10,0 S20,-10 20,0")
    smooth = commands[-1]
    assert smooth.command == 'C'
    assert xy(smooth.control1) == (10, -10)
    assert xy(smooth.control2) == (20, -10)


def test_smooth_quadratic_reflects_previous_control(parser):
    commands = parser.parse("M0,0 Q5,10 10,0 T20,0")
    assert commands[-1].command == 'Q'
    assert xy(commands[-1].control1) == (15, -10)


def test_smooth_without_previous_curve_uses_current_point(parser):
    commands = parser.parse("M3,4 S10,10 20,0")
    assert xy(commands[-1].control1) == (3, 4)


def test_arc_parameters(parser):
    arc = parser.parse("M0,0 A5 3 30 1 0 10,0")[-1]
    assert arc.command == 'A'
    assert (arc.rx, arc.ry, arc.rotation) == (5, 3, 30)
    assert arc.large_arc is True
    assert arc.sweep is False


def test_compact_arc_flags(parser):
    arc = parser.parse("M0,0 a5 5 0 01 10 0")[-1]
    assert arc.large_arc is False
    assert arc.sweep is True
    assert xy(arc.end) == (10, 0)

    arc = parser.parse("M0,0 A5,5,0,112,0")[-1]
    assert (arc.large_arc, arc.sweep) == (True, True)
    assert xy(arc.end) == (2, 0)


def test_repeated_compact_arcs(parser):
    commands = parser.parse("M0,0 a5 5 0 01 10 0 5 5 0 1010 0")
    assert [c.command for c in commands] == ['M', 'A', 'A']
    assert (commands[2].large_arc, commands[2].sweep) == (True, False)
    assert xy(commands[2].end) == (20, 0)


def test_arc_flag_must_be_zero_or_one(parser):
    with pytest.raises(MalformedPathData, match='arc flag'):
        parser.parse("M0,0 A5 5 0 2 0 10 0")


def test_overflowing_relative_point_raises(parser):
    with pytest.raises(MalformedPathData, match='non-finite point'):
        parser.parse("M1e308,0 l1e308,0", 'far')


def test_empty_data_gives_no_commands(parser):
    assert parser.parse("") == []
    assert parser.parse("   ") == []


@pytest.mark.parametrize('data', [
    "10 20",
    "M0,0 L10",
    "M0,0 Lx,5",
    "M0,0 L10,0 Z 5",
    "M0,0 L1e999,0",
])
def test_malformed_data_raises(parser, data):
    with pytest.raises(MalformedPathData):
        parser.parse(data, 'p1')


def test_malformed_error_carries_path_id(parser):
    with pytest.raises(MalformedPathData) as excinfo:
        parser.parse("M0,0 L10", 'outline')
    assert excinfo.value.path_id == 'outline'
    assert str(excinfo.value).startswith('outline:')


def test_non_string_data_raises(parser):
    with pytest.raises(MalformedPathData, match='must be a string'):
        parser.parse(None)


def test_split_subpaths(parser):
    subpaths = parser.split_subpaths(parser.parse("M0,0 L1,0 Z M5,5 L6,5"))
    assert len(subpaths) == 2
    assert [c.command for c in subpaths[0]] == ['M', 'L', 'Z']
    assert [c.command for c in subpaths[1]] == ['M', 'L']
