# ============================================================================
# sketch_builder.py - 2D Sketch Entity Synthesis
# ============================================================================

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Set, Tuple, Union

from ezdxf.math import Vec2

from config import BuildOptions
from curve_normalizer import ArcSegment, CubicSegment, LineSegment, Segment, UnsupportedSegmentType
from path_classifier import Path
from path_organizer import OrganizedPathSet, SketchGroup

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]


class NonFiniteCoordinate(ValueError):
    """Raised when a computed coordinate overflows to inf or nan"""


def format_coordinate(value: float, precision: int) -> float:
    """Round to the configured precision; -0.0 is folded to 0.0"""
    rounded = round(float(value), precision)
    if not math.isfinite(rounded):
        raise NonFiniteCoordinate(f"Cannot format non-finite coordinate: {value!r}")
    return rounded + 0.0


def _point_dict(point: Point2D) -> Dict[str, float]:
    return {'x': point[0], 'y': point[1]}


# ----------------------------------------------------------------------------
# Sketch entities
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class LineEntity:
    kind: ClassVar[str] = 'line'
    start: Point2D
    end: Point2D
    is_construction: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind,
            'startPoint': _point_dict(self.start),
            'endPoint': _point_dict(self.end),
            'isConstruction': self.is_construction,
        }


@dataclass(frozen=True)
class CubicEntity:
    kind: ClassVar[str] = 'cubic'
    start: Point2D
    end: Point2D
    control1: Point2D
    control2: Point2D
    is_construction: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind,
            'startPoint': _point_dict(self.start),
            'endPoint': _point_dict(self.end),
            'controlPoint1': _point_dict(self.control1),
            'controlPoint2': _point_dict(self.control2),
            'isConstruction': self.is_construction,
        }


@dataclass(frozen=True)
class ArcEntity:
    kind: ClassVar[str] = 'arc'
    start: Point2D
    end: Point2D
    center: Point2D
    radius: float
    is_construction: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind,
            'startPoint': _point_dict(self.start),
            'endPoint': _point_dict(self.end),
            'center': _point_dict(self.center),
            'radius': self.radius,
            'isConstruction': self.is_construction,
        }


SketchEntity = Union[LineEntity, CubicEntity, ArcEntity]


@dataclass(frozen=True)
class Sketch:
    """A named 2D entity collection; source_paths records which paths it holds"""
    name: str
    entities: Tuple[SketchEntity, ...] = ()
    constraints: Tuple[Dict[str, Any], ...] = ()
    source_paths: Tuple[Path, ...] = field(default=(), compare=False, repr=False)

    def owns(self, path: Path) -> bool:
        return any(source is path for source in self.source_paths)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': 'sketch',
            'name': self.name,
            'entities': [entity.to_dict() for entity in self.entities],
            'constraints': list(self.constraints),
        }


# ----------------------------------------------------------------------------
# Constraints
# ----------------------------------------------------------------------------

class ConstraintInferrer(ABC):
    """Extension point for deriving sketch constraints from paths"""

    @abstractmethod
    def infer(self, paths: Sequence[Path], entities: Sequence[SketchEntity]) -> List[Dict[str, Any]]:
        """Constraint descriptors for one sketch; may be empty"""


class NullConstraintInferrer(ConstraintInferrer):
    """Adds no constraints"""

    def infer(self, paths, entities):
        logger.debug("Constraint inference not implemented, sketch left unconstrained")
        return []


def arc_center(start: Vec2, end: Vec2, radius: float) -> Vec2:
    """Center of the minor arc from start to end, taken left of the chord.

    When the radius is shorter than half the chord the center collapses onto
    the chord midpoint.
    """
    dx, dy = end.x - start.x, end.y - start.y
    chord = math.hypot(dx, dy)
    mid = Vec2(start.x / 2.0 + end.x / 2.0, start.y / 2.0 + end.y / 2.0)
    if chord == 0:
        return mid
    half = chord / 2.0
    # sqrt(r - c) * sqrt(r + c) stays finite where r * r would overflow
    h = math.sqrt(radius - half) * math.sqrt(radius + half) if radius > half else 0.0
    return Vec2(mid.x - dy / chord * h, mid.y + dx / chord * h)


# ----------------------------------------------------------------------------
# Builder
# ----------------------------------------------------------------------------

class SketchBuilder:
    """Turns sketch groups into Sketch values"""

    def __init__(self, options: BuildOptions, constraint_inferrer: Optional[ConstraintInferrer] = None):
        self.options = options
        self.constraint_inferrer = constraint_inferrer or NullConstraintInferrer()

    def build(self, organized: OrganizedPathSet, groups: Sequence[SketchGroup],
              error_log: Optional[List[str]] = None) -> List[Sketch]:
        sketches = []
        taken: Set[str] = set()

        for group in groups:
            name = self.unique_name(group.name, taken)
            sketches.append(self.create_sketch(name, group.paths, error_log))

        # All construction geometry goes into the first sketch
        if organized.construction:
            if sketches:
                first = sketches[0]
                entities = self.entities_for_paths(organized.construction, error_log)
                sketches[0] = replace(
                    first,
                    entities=first.entities + tuple(entities),
                    source_paths=first.source_paths + organized.construction,
                )
            else:
                message = (f"{len(organized.construction)} construction path(s) dropped: "
                           f"no sketch to hold them")
                logger.warning(message)
                if error_log is not None:
                    error_log.append(message)

        return sketches

    @staticmethod
    def unique_name(name: str, taken: Set[str]) -> str:
        candidate = name
        suffix = 2
        while candidate in taken:
            candidate = f"{name}_{suffix}"
            suffix += 1
        taken.add(candidate)
        return candidate

    def create_sketch(self, name: str, paths: Sequence[Path],
                      error_log: Optional[List[str]] = None) -> Sketch:
        logger.debug(f'Creating sketch "{name}" with {len(paths)} paths')
        entities = self.entities_for_paths(paths, error_log)

        constraints = []
        if self.options.apply_constraints:
            constraints = self.constraint_inferrer.infer(paths, entities)

        return Sketch(
            name=name,
            entities=tuple(entities),
            constraints=tuple(constraints),
            source_paths=tuple(paths),
        )

    def entities_for_paths(self, paths: Sequence[Path],
                           error_log: Optional[List[str]] = None) -> List[SketchEntity]:
        entities = []
        for path in paths:
            entities.extend(self.entities_for_path(path, error_log))
        return entities

    def entities_for_path(self, path: Path, error_log: Optional[List[str]] = None) -> List[SketchEntity]:
        """One entity per segment, in source order"""
        entities = []
        for segment in path.segments:
            try:
                entities.append(self.entity_for_segment(segment, path.is_construction))
            except (UnsupportedSegmentType, NonFiniteCoordinate) as e:
                message = f"{path.label}: {e}, skipping segment"
                logger.warning(message)
                if error_log is not None:
                    error_log.append(message)
        return entities

    def entity_for_segment(self, segment: Segment, is_construction: bool) -> SketchEntity:
        point = self.format_point

        if isinstance(segment, LineSegment):
            return LineEntity(point(segment.start), point(segment.end), is_construction)

        if isinstance(segment, CubicSegment):
            return CubicEntity(
                point(segment.start), point(segment.end),
                point(segment.control1), point(segment.control2),
                is_construction,
            )

        if isinstance(segment, ArcSegment):
            radius = segment.radius
            return ArcEntity(
                point(segment.start), point(segment.end),
                point(arc_center(segment.start, segment.end, radius)),
                self.format(radius),
                is_construction,
            )

        raise UnsupportedSegmentType(f"Unsupported segment type: {getattr(segment, 'kind', type(segment).__name__)}")

    def format(self, value: float) -> float:
        return format_coordinate(value, self.options.decimal_precision)

    def format_point(self, point: Vec2) -> Point2D:
        return (self.format(point.x), self.format(point.y))
