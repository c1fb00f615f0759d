# ============================================================================
# config.py - Configuration and Constants
# ============================================================================

from dataclasses import dataclass, fields
from enum import Enum
from numbers import Real
from typing import Any, Dict, Mapping, Optional

import yaml


class Config:
    """Global constants for SVG path to CAD feature conversion"""

    # Tolerance Settings
    PATH_CLOSURE_TOLERANCE = 1e-6  # source units - first start vs last end

    # Unit Conversion
    MM_PER_INCH = 25.4

    # Default Values
    DEFAULT_EXTRUDE_DEPTH = 10.0  # global units
    DEFAULT_REVOLVE_ANGLE = 360.0  # degrees
    DEFAULT_PATTERN_SPACING = 20.0  # mm, both axes
    DEFAULT_MIRROR_PLANE = 'Front'
    DEFAULT_OPERATION = 'new'
    DEFAULT_OPEN_PATH_WIDTH = 1.0  # global units
    DEFAULT_DECIMAL_PRECISION = 4
    DEFAULT_UNITS = 'mm'


UNIT_ALIASES = {
    'mm': 'mm',
    'millimeter': 'mm',
    'millimeters': 'mm',
    'in': 'inch',
    'inch': 'inch',
    'inches': 'inch',
}


class InvalidConfiguration(ValueError):
    """Raised when build options violate the configuration contract"""


def normalize_unit(value: Optional[str]) -> Optional[str]:
    """Map a unit spelling ('in', 'inches', 'MM', ...) to 'mm' or 'inch'"""
    if value is None:
        return None
    return UNIT_ALIASES.get(str(value).strip().lower())


def convert_length(value: float, from_units: str, to_units: str) -> float:
    """Convert a length between mm and inch"""
    if from_units == to_units:
        return value
    if from_units == 'inch' and to_units == 'mm':
        return value * Config.MM_PER_INCH
    if from_units == 'mm' and to_units == 'inch':
        return value / Config.MM_PER_INCH
    raise InvalidConfiguration(f"Cannot convert length from '{from_units}' to '{to_units}'")


class GroupingPolicy(Enum):
    """How paths are grouped into sketches"""
    OPEN_CLOSED = 'open_closed'
    PER_PATH = 'per_path'
    SINGLE = 'single'


# camelCase option names used by drawing front-ends
_CAMEL_CASE_KEYS = {
    'separateSketches': 'separate_sketches',
    'groupsAsSketch': 'groups_as_sketch',
    'defaultExtrusion': 'default_extrusion',
    'units': 'units',
    'create3D': 'create_3d',
    'preserveConstruction': 'preserve_construction',
    'applyConstraints': 'apply_constraints',
    'separateOpenClosed': 'separate_open_closed',
    'extrudeOpenPaths': 'extrude_open_paths',
    'openPathWidth': 'open_path_width',
    'decimalPrecision': 'decimal_precision',
}

_BOOL_FIELDS = (
    'separate_sketches',
    'groups_as_sketch',
    'create_3d',
    'preserve_construction',
    'apply_constraints',
    'separate_open_closed',
    'extrude_open_paths',
)


@dataclass(frozen=True)
class BuildOptions:
    """Immutable per-call options for a build"""
    separate_sketches: bool = True
    groups_as_sketch: bool = True
    default_extrusion: float = Config.DEFAULT_EXTRUDE_DEPTH
    units: str = Config.DEFAULT_UNITS
    create_3d: bool = True
    preserve_construction: bool = True
    apply_constraints: bool = True
    separate_open_closed: bool = True
    extrude_open_paths: bool = True
    open_path_width: float = Config.DEFAULT_OPEN_PATH_WIDTH
    decimal_precision: int = Config.DEFAULT_DECIMAL_PRECISION

    def __post_init__(self):
        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise InvalidConfiguration(f"{name} must be a bool, got {getattr(self, name)!r}")

        for name in ('default_extrusion', 'open_path_width'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real):
                raise InvalidConfiguration(f"{name} must be a number, got {value!r}")
            if not value > 0:
                raise InvalidConfiguration(f"{name} must be positive, got {value!r}")

        precision = self.decimal_precision
        if isinstance(precision, bool) or not isinstance(precision, int):
            raise InvalidConfiguration(f"decimal_precision must be an integer, got {precision!r}")
        if precision < 0:
            raise InvalidConfiguration(f"decimal_precision must not be negative, got {precision}")

        units = normalize_unit(self.units)
        if units is None:
            raise InvalidConfiguration(f"units must be 'mm' or 'inch', got {self.units!r}")
        object.__setattr__(self, 'units', units)

    @property
    def grouping_policy(self) -> GroupingPolicy:
        """Resolve the sketch grouping policy; separate_open_closed wins over separate_sketches"""
        if self.separate_open_closed:
            return GroupingPolicy.OPEN_CLOSED
        if self.separate_sketches:
            return GroupingPolicy.PER_PATH
        return GroupingPolicy.SINGLE

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'BuildOptions':
        """Build options from camelCase or snake_case keys; unknown keys are rejected"""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidConfiguration(f"Options must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise InvalidConfiguration(f"Unknown option: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path) -> 'BuildOptions':
        """Load options from a YAML file (an empty file gives the defaults)"""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)
