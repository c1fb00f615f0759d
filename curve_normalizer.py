# ============================================================================
# curve_normalizer.py - Reduction to Line / Cubic Bezier / Arc Primitives
# ============================================================================

import logging
from dataclasses import dataclass
from typing import ClassVar, List, Optional, Union

from ezdxf.math import Vec2

from path_parser import PathCommand

logger = logging.getLogger(__name__)


class UnsupportedSegmentType(ValueError):
    """Raised for a command or segment kind with no canonical primitive"""


@dataclass(frozen=True)
class LineSegment:
    kind: ClassVar[str] = 'line'
    start: Vec2
    end: Vec2


@dataclass(frozen=True)
class CubicSegment:
    kind: ClassVar[str] = 'cubic'
    start: Vec2
    end: Vec2
    control1: Vec2
    control2: Vec2


@dataclass(frozen=True)
class ArcSegment:
    """Elliptical arc kept in SVG endpoint form.

    Only ``radius`` (the larger of the two radii) is used downstream; the
    rotation and the large-arc / sweep flags are carried but not modeled.
    """
    kind: ClassVar[str] = 'arc'
    start: Vec2
    end: Vec2
    rx: float
    ry: float
    rotation: float = 0.0
    large_arc: bool = False
    sweep: bool = False

    @property
    def radius(self) -> float:
        return max(self.rx, self.ry)


Segment = Union[LineSegment, CubicSegment, ArcSegment]


def quadratic_to_cubic(p0: Vec2, p1: Vec2, p2: Vec2) -> CubicSegment:
    """Degree-elevate a quadratic Bezier; endpoints are kept exactly"""
    control1 = p0 + (p1 - p0) * (2.0 / 3.0)
    control2 = p2 + (p1 - p2) * (2.0 / 3.0)
    return CubicSegment(start=p0, end=p2, control1=control1, control2=control2)


class CurveNormalizer:
    """Converts parsed path commands into canonical segments"""

    def normalize_command(self, command: PathCommand) -> Optional[Segment]:
        """Convert one command; moveto and zero-length closepath give None"""
        kind = command.command

        if kind == 'M':
            return None

        if kind == 'L':
            return LineSegment(command.start, command.end)

        if kind == 'Z':
            if command.start.distance(command.end) == 0:
                return None
            return LineSegment(command.start, command.end)

        if kind == 'C':
            return CubicSegment(command.start, command.end, command.control1, command.control2)

        if kind == 'Q':
            return quadratic_to_cubic(command.start, command.control1, command.end)

        if kind == 'A':
            return ArcSegment(command.start, command.end, command.rx, command.ry,
                              command.rotation, command.large_arc, command.sweep)

        raise UnsupportedSegmentType(f"Unsupported path command: {kind!r}")

    def normalize(self, commands: List[PathCommand], path_id: Optional[str] = None,
                  error_log: Optional[List[str]] = None) -> List[Segment]:
        """Convert a command list, skipping commands that cannot be converted"""
        segments = []
        for command in commands:
            try:
                segment = self.normalize_command(command)
            except UnsupportedSegmentType as e:
                message = f"{path_id or 'path'}: {e}, skipping"
                logger.warning(message)
                if error_log is not None:
                    error_log.append(message)
                continue
            if segment is not None:
                segments.append(segment)
        return segments
