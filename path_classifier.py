# ============================================================================
# path_classifier.py - Path Closure, Construction and Directive Classification
# ============================================================================

import logging
import math
import re
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, ClassVar, Dict, Mapping, Optional, Sequence, Tuple, Union

from ezdxf.math import Vec2

from config import Config, normalize_unit
from curve_normalizer import LineSegment, Segment
from path_parser import MalformedPathData

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------------
# Special-processing directives
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class ExtrudeDirective:
    tag: ClassVar[str] = 'extrude'
    depth: Optional[float] = None
    units: Optional[str] = None


@dataclass(frozen=True)
class RevolveDirective:
    tag: ClassVar[str] = 'revolve'
    angle: Optional[float] = None


@dataclass(frozen=True)
class PatternDirective:
    tag: ClassVar[str] = 'pattern'
    x: Optional[int] = None
    y: Optional[int] = None


@dataclass(frozen=True)
class MirrorDirective:
    tag: ClassVar[str] = 'mirror'


SpecialProcessing = Union[ExtrudeDirective, RevolveDirective, PatternDirective, MirrorDirective]

DIRECTIVE_TAGS = ('extrude', 'revolve', 'pattern', 'mirror')


def _number(value: Any) -> Optional[float]:
    """Read a finite float from a number or numeric string"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Real):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _count(value: Any) -> Optional[int]:
    """Read a whole-number count"""
    number = _number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


# ----------------------------------------------------------------------------
# Name tags: "Bracket#extrude=5in#const"
# ----------------------------------------------------------------------------

LEADING_NUMBER_RE = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)')
PATTERN_TAG_RE = re.compile(r'(\d+)x(\d+)')


@dataclass(frozen=True)
class NameTags:
    """Clean name plus the processing tags embedded after '#' separators"""
    name: Optional[str] = None
    is_construction: bool = False
    closed: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)


def parse_name_tags(name: Optional[str]) -> NameTags:
    """Split '#'-separated processing tags off an element name"""
    if not name or '#' not in name:
        return NameTags(name=name)

    parts = name.split('#')
    is_construction = False
    closed = False
    metadata = {}

    for part in parts[1:]:
        tag = part.strip().lower()

        if tag in ('const', 'construction'):
            is_construction = True
        elif tag == 'closed':
            closed = True
        elif tag.startswith('extrude='):
            value = tag[len('extrude='):]
            match = LEADING_NUMBER_RE.match(value)
            if match:
                units = 'mm' if 'mm' in value else 'inch' if 'in' in value else None
                metadata.setdefault('extrude', {'depth': float(match.group(0)), 'units': units})
        elif tag.startswith('revolve='):
            match = LEADING_NUMBER_RE.match(tag[len('revolve='):])
            if match:
                metadata.setdefault('revolve', {'angle': float(match.group(0))})
        elif tag.startswith('pattern='):
            match = PATTERN_TAG_RE.search(tag[len('pattern='):])
            if match:
                metadata.setdefault('pattern', {'x': int(match.group(1)), 'y': int(match.group(2))})
        elif tag == 'mirror':
            metadata.setdefault('mirror', True)
        elif tag.startswith('dim='):
            # Dimension hints are recognised but produce no feature
            pass
        else:
            logger.debug(f"Unknown name tag '{tag}' on '{name}'")

    clean = parts[0].strip() or None
    return NameTags(clean, is_construction, closed, metadata)


# ----------------------------------------------------------------------------
# Paths
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class RawPath:
    """One path as delivered by the drawing parser: command data plus metadata"""
    data: str
    name: Optional[str] = None
    path_id: Optional[str] = None
    is_construction: bool = False
    closed: bool = False
    special_processing: Optional[Mapping[str, Any]] = None
    style: Optional[Mapping[str, Any]] = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'RawPath':
        return cls(
            data=d.get('data', d.get('d', '')),
            name=d.get('name'),
            path_id=d.get('id'),
            is_construction=bool(d.get('isConstruction', False)),
            closed=bool(d.get('closed', False)),
            special_processing=d.get('specialProcessing'),
            style=d.get('style'),
        )


@dataclass(frozen=True)
class Path:
    """A classified, immutable drawing stroke"""
    segments: Tuple[Segment, ...]
    closed: bool = False
    is_construction: bool = False
    name: Optional[str] = None
    special_processing: Optional[SpecialProcessing] = None
    path_id: Optional[str] = None

    @property
    def start(self) -> Optional[Vec2]:
        return self.segments[0].start if self.segments else None

    @property
    def end(self) -> Optional[Vec2]:
        return self.segments[-1].end if self.segments else None

    @property
    def label(self) -> str:
        return self.name or self.path_id or 'unnamed path'


class PathClassifier:
    """Tags paths closed/open and construction, and extracts their directive"""

    def __init__(self, epsilon: float = Config.PATH_CLOSURE_TOLERANCE, units: str = Config.DEFAULT_UNITS):
        self.epsilon = epsilon
        self.units = normalize_unit(units) or Config.DEFAULT_UNITS

    def is_closed(self, segments: Sequence[Segment]) -> bool:
        """A path is closed when its last end meets its first start"""
        if not segments:
            return False
        return segments[0].start.distance(segments[-1].end) <= self.epsilon

    @staticmethod
    def is_dashed(style: Optional[Mapping[str, Any]]) -> bool:
        """Dashed strokes mark construction geometry"""
        if not style:
            return False
        dash = style.get('stroke-dasharray')
        return dash is not None and str(dash).strip().lower() not in ('', 'none')

    def extract_directive(self, metadata: Optional[Mapping[str, Any]],
                          path_id: Optional[str] = None) -> Optional[SpecialProcessing]:
        """Read the first recognised directive from upstream metadata"""
        if not metadata:
            return None

        directive = None
        for tag, value in metadata.items():
            if tag not in DIRECTIVE_TAGS:
                logger.debug(f"{path_id or 'path'}: ignoring special processing '{tag}'")
                continue
            if directive is not None:
                logger.warning(f"{path_id or 'path'}: '{tag}' ignored, '{directive.tag}' already applies")
                continue
            directive = self._directive(tag, value)
        return directive

    def _directive(self, tag: str, value: Any) -> Optional[SpecialProcessing]:
        if tag == 'mirror':
            return MirrorDirective() if value or value == {} else None

        params = value if isinstance(value, Mapping) else {}

        if tag == 'extrude':
            depth = _number(params.get('depth') if params else value)
            units = normalize_unit(params.get('units')) or self.units
            return ExtrudeDirective(depth=depth, units=units)

        if tag == 'revolve':
            return RevolveDirective(angle=_number(params.get('angle') if params else value))

        return PatternDirective(x=_count(params.get('x')), y=_count(params.get('y')))

    def classify(self, segments: Sequence[Segment], source: RawPath) -> Path:
        """Build the immutable Path for one subpath of a raw path"""
        segments = list(segments)
        if not segments:
            raise MalformedPathData("path has no drawable segments", source.path_id)

        tags = parse_name_tags(source.name)

        closed = self.is_closed(segments)
        if not closed and (source.closed or tags.closed):
            segments.append(LineSegment(segments[-1].end, segments[0].start))
            closed = True

        is_construction = bool(source.is_construction) or tags.is_construction or self.is_dashed(source.style)
        metadata = source.special_processing or tags.metadata
        directive = self.extract_directive(metadata, source.path_id)

        return Path(
            segments=tuple(segments),
            closed=closed,
            is_construction=is_construction,
            name=tags.name,
            special_processing=directive,
            path_id=source.path_id,
        )