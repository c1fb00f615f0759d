# ============================================================================
# feature_builder.py - 3D Feature Descriptor Synthesis
# ============================================================================

import json
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from config import BuildOptions, Config, convert_length
from path_classifier import ExtrudeDirective, MirrorDirective, PatternDirective, Path, RevolveDirective
from path_organizer import OrganizedPathSet
from sketch_builder import NonFiniteCoordinate, Sketch, format_coordinate

logger = logging.getLogger(__name__)


class MissingSketchReference(LookupError):
    """Raised when a path's owning sketch cannot be found"""


# ----------------------------------------------------------------------------
# Feature descriptors
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class ExtrudeFeature:
    kind: ClassVar[str] = 'extrude'
    name: str
    sketch_name: str
    depth: float
    operation: str = Config.DEFAULT_OPERATION

    @property
    def reference(self) -> str:
        return self.sketch_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.kind,
            'name': self.name,
            'sketchName': self.sketch_name,
            'depth': self.depth,
            'operation': self.operation,
        }


@dataclass(frozen=True)
class RevolveFeature:
    kind: ClassVar[str] = 'revolve'
    name: str
    sketch_name: str
    angle: float
    operation: str = Config.DEFAULT_OPERATION

    @property
    def reference(self) -> str:
        return self.sketch_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.kind,
            'name': self.name,
            'sketchName': self.sketch_name,
            'angle': self.angle,
            'operation': self.operation,
        }


@dataclass(frozen=True)
class PatternFeature:
    kind: ClassVar[str] = 'pattern'
    name: str
    target_name: str
    x_count: int
    y_count: int
    spacing: Tuple[float, float]
    operation: str = Config.DEFAULT_OPERATION

    @property
    def reference(self) -> str:
        return self.target_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.kind,
            'name': self.name,
            'targetName': self.target_name,
            'xCount': self.x_count,
            'yCount': self.y_count,
            'spacing': {'x': self.spacing[0], 'y': self.spacing[1]},
            'operation': self.operation,
        }


@dataclass(frozen=True)
class MirrorFeature:
    kind: ClassVar[str] = 'mirror'
    name: str
    target_name: str
    plane: str = Config.DEFAULT_MIRROR_PLANE
    operation: str = Config.DEFAULT_OPERATION

    @property
    def reference(self) -> str:
        return self.target_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.kind,
            'name': self.name,
            'targetName': self.target_name,
            'plane': self.plane,
            'operation': self.operation,
        }


Feature3D = Union[ExtrudeFeature, RevolveFeature, PatternFeature, MirrorFeature]


def feature_name(kind: str, sketch_name: str) -> str:
    """Extrude_<sketch>, Revolve_<sketch>, ..."""
    return f"{kind.capitalize()}_{sketch_name}"


@dataclass(frozen=True)
class BuildResult:
    """Sketches followed by the 3D features that reference them"""
    sketches: Tuple[Sketch, ...] = ()
    features_3d: Tuple[Feature3D, ...] = ()

    @property
    def features(self) -> Tuple[Union[Sketch, Feature3D], ...]:
        return self.sketches + self.features_3d

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sketches': [sketch.to_dict() for sketch in self.sketches],
            'features3D': [feature.to_dict() for feature in self.features_3d],
            'features': [feature.to_dict() for feature in self.features],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


# ----------------------------------------------------------------------------
# Builder
# ----------------------------------------------------------------------------

def _report(message: str, error_log: Optional[List[str]]):
    logger.warning(message)
    if error_log is not None:
        error_log.append(message)


@dataclass
class _FeatureSet:
    """Features collected during one build, unique by name"""
    features: List[Feature3D] = field(default_factory=list)
    by_name: Dict[str, Feature3D] = field(default_factory=dict)

    def add(self, feature: Feature3D) -> bool:
        if feature.name in self.by_name:
            return False
        self.by_name[feature.name] = feature
        self.features.append(feature)
        return True

    def get(self, name: str) -> Optional[Feature3D]:
        return self.by_name.get(name)


class FeatureBuilder:
    """Creates extrude / revolve / pattern / mirror descriptors from sketches"""

    def __init__(self, options: BuildOptions):
        self.options = options

    def build(self, sketches: Sequence[Sketch], organized: OrganizedPathSet,
              error_log: Optional[List[str]] = None) -> List[Feature3D]:
        if not self.options.create_3d:
            return []

        collected = _FeatureSet()

        # Process closed paths for extrusion
        if organized.closed:
            for feature in self.closed_path_extrusions(sketches, organized.closed, error_log):
                collected.add(feature)

        # Process open paths if extrude_open_paths is enabled
        if self.options.extrude_open_paths and organized.open:
            self.open_path_extrusions(sketches, organized.open, error_log)

        # Process special features
        if organized.by_special_processing:
            for path in organized.tagged(ExtrudeDirective.tag):
                feature = self.directive_extrusion(sketches, path, error_log)
                if feature is None or collected.add(feature):
                    continue
                existing = collected.get(feature.name)
                if existing.depth != feature.depth:
                    _report(f"Extrude directive on {path.label} ignored: {feature.name} already "
                            f"extrudes {existing.depth}, directive asks for {feature.depth}", error_log)
                else:
                    logger.debug(f"{feature.name} already exists, skipping directive on {path.label}")

            for tag, create in ((RevolveDirective.tag, self.revolution),
                                (PatternDirective.tag, self.pattern),
                                (MirrorDirective.tag, self.mirror)):
                for path in organized.tagged(tag):
                    feature = create(sketches, path, error_log)
                    if feature is not None and not collected.add(feature):
                        _report(f"Duplicate feature {feature.name} skipped for {path.label}", error_log)

        logger.debug(f"Created {len(collected.features)} 3D features")
        return collected.features

    # ------------------------------------------------------------------
    # Sketch resolution and depths
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_sketch(sketches: Sequence[Sketch], path: Path) -> Sketch:
        """Find the sketch that holds a path"""
        for sketch in sketches:
            if sketch.owns(path):
                return sketch
        raise MissingSketchReference(f"No sketch holds path '{path.label}'")

    def _owning_sketch(self, sketches: Sequence[Sketch], path: Path, kind: str,
                       error_log: Optional[List[str]]) -> Optional[Sketch]:
        try:
            return self.resolve_sketch(sketches, path)
        except MissingSketchReference as e:
            _report(f"{kind.capitalize()} skipped: {e}", error_log)
            return None

    def extrusion_depth(self, path: Optional[Path]) -> Optional[float]:
        """Depth from the path's extrude directive in global units, or None"""
        directive = path.special_processing if path is not None else None
        if not isinstance(directive, ExtrudeDirective) or directive.depth is None:
            return None
        units = directive.units or self.options.units
        return self._format(convert_length(directive.depth, units, self.options.units))

    def _format(self, value: float) -> float:
        return format_coordinate(value, self.options.decimal_precision)

    # ------------------------------------------------------------------
    # Extrusions
    # ------------------------------------------------------------------

    def closed_path_extrusions(self, sketches: Sequence[Sketch], closed_paths: Sequence[Path],
                               error_log: Optional[List[str]] = None) -> List[ExtrudeFeature]:
        """One extrusion per sketch holding closed paths"""
        extrusions = []
        for sketch in sketches:
            owned = [path for path in closed_paths if sketch.owns(path)]
            if not owned:
                continue

            depth = None
            for path in owned:
                try:
                    depth = self.extrusion_depth(path)
                except NonFiniteCoordinate as e:
                    _report(f"Extrude directive on {path.label} ignored: {e}", error_log)
                    continue
                if depth is not None:
                    break
            if depth is None:
                depth = self._format(self.options.default_extrusion)
            elif depth <= 0:
                _report(f"Extrude skipped for {sketch.name}: depth must be positive, got {depth}", error_log)
                continue

            extrusions.append(ExtrudeFeature(feature_name('extrude', sketch.name), sketch.name, depth))
        return extrusions

    def open_path_extrusions(self, sketches: Sequence[Sketch], open_paths: Sequence[Path],
                             error_log: Optional[List[str]] = None) -> List[ExtrudeFeature]:
        """Open paths would need offsetting by open_path_width; not implemented"""
        _report(f"Open path extrusion not implemented: {len(open_paths)} open path(s) "
                f"not extruded (width {self.options.open_path_width})", error_log)
        return []

    def directive_extrusion(self, sketches: Sequence[Sketch], path: Path,
                            error_log: Optional[List[str]] = None) -> Optional[ExtrudeFeature]:
        try:
            depth = self.extrusion_depth(path)
        except NonFiniteCoordinate as e:
            _report(f"Extrude skipped for {path.label}: {e}", error_log)
            return None
        if depth is None or depth <= 0:
            _report(f"Extrude skipped for {path.label}: incomplete depth", error_log)
            return None

        sketch = self._owning_sketch(sketches, path, 'extrude', error_log)
        if sketch is None:
            return None
        return ExtrudeFeature(feature_name('extrude', sketch.name), sketch.name, depth)

    # ------------------------------------------------------------------
    # Revolve / Pattern / Mirror
    # ------------------------------------------------------------------

    def revolution(self, sketches: Sequence[Sketch], path: Path,
                   error_log: Optional[List[str]] = None) -> Optional[RevolveFeature]:
        directive = path.special_processing
        # A missing or zero angle means a full turn
        angle = directive.angle or Config.DEFAULT_REVOLVE_ANGLE
        if angle <= 0 or angle > 360:
            _report(f"Revolve skipped for {path.label}: invalid angle ({angle}), "
                    f"must be in range (0, 360]", error_log)
            return None

        sketch = self._owning_sketch(sketches, path, 'revolve', error_log)
        if sketch is None:
            return None
        return RevolveFeature(feature_name('revolve', sketch.name), sketch.name, angle)

    def pattern(self, sketches: Sequence[Sketch], path: Path,
                error_log: Optional[List[str]] = None) -> Optional[PatternFeature]:
        directive = path.special_processing
        if directive.x is None or directive.y is None or directive.x < 1 or directive.y < 1:
            _report(f"Pattern skipped for {path.label}: counts incomplete "
                    f"({directive.x}x{directive.y})", error_log)
            return None

        sketch = self._owning_sketch(sketches, path, 'pattern', error_log)
        if sketch is None:
            return None

        spacing = self._format(convert_length(Config.DEFAULT_PATTERN_SPACING, 'mm', self.options.units))
        return PatternFeature(feature_name('pattern', sketch.name), sketch.name,
                              directive.x, directive.y, (spacing, spacing))

    def mirror(self, sketches: Sequence[Sketch], path: Path,
               error_log: Optional[List[str]] = None) -> Optional[MirrorFeature]:
        sketch = self._owning_sketch(sketches, path, 'mirror', error_log)
        if sketch is None:
            return None
        return MirrorFeature(feature_name('mirror', sketch.name), sketch.name)
