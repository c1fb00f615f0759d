# ============================================================================
# path_parser.py - SVG Path Command Parsing
# ============================================================================

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional

from ezdxf.math import Vec2

logger = logging.getLogger(__name__)


COMMAND_RE = re.compile(r'([MLHVCSQTAZmlhvcsqtaz])([^MLHVCSQTAZmlhvcsqtaz]*)')
NUMBER_RE = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')
FLAG_RE = re.compile(r'[01]')
SEPARATOR_RE = re.compile(r'[\s,]*')

# Arc arguments 3 and 4 (large-arc, sweep) are single-character flags
ARC_FLAG_SLOTS = (3, 4)

# Number of arguments consumed by one repetition of each command
ARITY = {
    'M': 2, 'L': 2, 'H': 1, 'V': 1, 'C': 6,
    'S': 4, 'Q': 4, 'T': 2, 'A': 7, 'Z': 0,
}


class MalformedPathData(ValueError):
    """Raised when a path's command string cannot be parsed"""

    def __init__(self, message: str, path_id: Optional[str] = None):
        self.path_id = path_id
        if path_id is not None:
            message = f"{path_id}: {message}"
        super().__init__(message)


@dataclass(frozen=True)
class PathCommand:
    """One drawing command resolved to absolute coordinates"""
    command: str  # 'M', 'L', 'C', 'Q', 'A' or 'Z'
    start: Vec2
    end: Vec2
    control1: Optional[Vec2] = None
    control2: Optional[Vec2] = None
    rx: float = 0.0
    ry: float = 0.0
    rotation: float = 0.0
    large_arc: bool = False
    sweep: bool = False


class PathCommandParser:
    """Parses SVG path data into absolute PathCommand records"""

    def parse(self, data: str, path_id: Optional[str] = None) -> List[PathCommand]:
        """Parse one path's command string"""
        if not isinstance(data, str):
            raise MalformedPathData(f"path data must be a string, got {type(data).__name__}", path_id)

        text = data.strip()
        if not text:
            return []

        first = COMMAND_RE.search(text)
        if first is None or text[:first.start()].strip():
            raise MalformedPathData(f"path data must start with a command letter: {text[:20]!r}", path_id)

        commands = []
        current = Vec2(0, 0)
        subpath_start = Vec2(0, 0)

        for match in COMMAND_RE.finditer(text):
            letter = match.group(1)
            upper = letter.upper()
            relative = letter.islower()
            arity = ARITY[upper]
            params = self.parse_numbers(match.group(2), path_id, arc=upper == 'A')

            if arity == 0:
                if params:
                    raise MalformedPathData(f"'{letter}' takes no arguments, got {len(params)}", path_id)
                commands.append(PathCommand('Z', current, subpath_start))
                current = subpath_start
                continue

            if not params or len(params) % arity:
                raise MalformedPathData(
                    f"'{letter}' expects a multiple of {arity} arguments, got {len(params)}", path_id)

            for i in range(0, len(params), arity):
                args = params[i:i + arity]
                # Extra moveto pairs are implicit line-tos
                if upper == 'M' and i > 0:
                    upper = 'L'

                command = self._resolve(upper, args, relative, current, commands)
                if not self.is_finite(command):
                    raise MalformedPathData(f"'{letter}' resolves to a non-finite point", path_id)
                commands.append(command)
                current = command.end
                if command.command == 'M':
                    subpath_start = current

        logger.debug(f"Parsed {len(commands)} commands{' for ' + path_id if path_id else ''}")
        return commands

    @staticmethod
    def parse_numbers(run: str, path_id: Optional[str] = None, arc: bool = False) -> List[float]:
        """Split a numeric run into floats; anything else in the run is an error.

        With ``arc`` set, the flag slots of each arc repetition take exactly one
        '0' or '1' character, so compact forms like ``0 01 10 0`` split correctly.
        """
        numbers = []
        pos = 0
        run = run.strip()
        while pos < len(run):
            pos = SEPARATOR_RE.match(run, pos).end()
            if pos >= len(run):
                break
            is_flag = arc and len(numbers) % ARITY['A'] in ARC_FLAG_SLOTS
            match = (FLAG_RE if is_flag else NUMBER_RE).match(run, pos)
            if match is None:
                kind = 'arc flag' if is_flag else 'number'
                raise MalformedPathData(f"malformed {kind} near {run[pos:pos + 12]!r}", path_id)
            value = float(match.group(0))
            if not math.isfinite(value):
                raise MalformedPathData(f"non-finite number {match.group(0)!r}", path_id)
            numbers.append(value)
            pos = match.end()
        return numbers

    def _resolve(self, upper: str, args: List[float], relative: bool,
                 current: Vec2, previous: List[PathCommand]) -> PathCommand:
        """Turn one command repetition into an absolute PathCommand"""

        def point(x, y):
            if relative:
                return Vec2(current.x + x, current.y + y)
            return Vec2(x, y)

        if upper == 'M':
            return PathCommand('M', current, point(args[0], args[1]))

        if upper == 'L':
            return PathCommand('L', current, point(args[0], args[1]))

        if upper == 'H':
            x = current.x + args[0] if relative else args[0]
            return PathCommand('L', current, Vec2(x, current.y))

        if upper == 'V':
            y = current.y + args[0] if relative else args[0]
            return PathCommand('L', current, Vec2(current.x, y))

        if upper == 'C':
            return PathCommand('C', current, point(args[4], args[5]),
                               control1=point(args[0], args[1]),
                               control2=point(args[2], args[3]))

        if upper == 'S':
            control1 = self._reflect(current, previous, 'C', 'control2')
            return PathCommand('C', current, point(args[2], args[3]),
                               control1=control1,
                               control2=point(args[0], args[1]))

        if upper == 'Q':
            return PathCommand('Q', current, point(args[2], args[3]),
                               control1=point(args[0], args[1]))

        if upper == 'T':
            control1 = self._reflect(current, previous, 'Q', 'control1')
            return PathCommand('Q', current, point(args[0], args[1]), control1=control1)

        # Elliptical arc: rx ry rotation large-arc sweep x y
        return PathCommand('A', current, point(args[5], args[6]),
                           rx=abs(args[0]), ry=abs(args[1]), rotation=args[2],
                           large_arc=args[3] != 0, sweep=args[4] != 0)

    @staticmethod
    def is_finite(command: PathCommand) -> bool:
        """True when every resolved point of the command is finite"""
        points = (command.end, command.control1, command.control2)
        return all(math.isfinite(p.x) and math.isfinite(p.y) for p in points if p is not None)

    @staticmethod
    def _reflect(current: Vec2, previous: List[PathCommand], family: str, attr: str) -> Vec2:
        """Reflect the previous control point about the current point"""
        if previous and previous[-1].command == family:
            control = getattr(previous[-1], attr)
            return Vec2(2 * current.x - control.x, 2 * current.y - control.y)
        return current

    @staticmethod
    def split_subpaths(commands: List[PathCommand]) -> List[List[PathCommand]]:
        """Split a command list at every moveto"""
        subpaths = []
        for command in commands:
            if command.command == 'M' or not subpaths:
                subpaths.append([])
            subpaths[-1].append(command)
        return subpaths
