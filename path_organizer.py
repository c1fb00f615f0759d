# ============================================================================
# path_organizer.py - Path Bucketing and Sketch Grouping
# ============================================================================

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from config import BuildOptions, GroupingPolicy
from path_classifier import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrganizedPathSet:
    """Paths split into closed / open / construction buckets"""
    closed: Tuple[Path, ...] = ()
    open: Tuple[Path, ...] = ()
    construction: Tuple[Path, ...] = ()
    # tag -> paths, with a 'default' bucket; None unless groups_as_sketch
    by_special_processing: Optional[Dict[str, Tuple[Path, ...]]] = None

    def tagged(self, tag: str) -> Tuple[Path, ...]:
        if not self.by_special_processing:
            return ()
        return self.by_special_processing.get(tag, ())


@dataclass(frozen=True)
class SketchGroup:
    name: str
    paths: Tuple[Path, ...]


class PathOrganizer:
    """Organizes classified paths and decides how they map onto sketches"""

    CLOSED_SKETCH = 'ClosedPaths'
    OPEN_SKETCH = 'OpenPaths'
    ALL_SKETCH = 'AllPaths'

    def __init__(self, options: BuildOptions):
        self.options = options

    def organize(self, paths: Sequence[Path]) -> OrganizedPathSet:
        """Split paths into buckets, and group by directive when groups_as_sketch"""
        closed, open_, construction = [], [], []

        for path in paths:
            if path.is_construction and self.options.preserve_construction:
                construction.append(path)
            elif path.closed:
                closed.append(path)
            else:
                open_.append(path)

        by_special_processing = None
        if self.options.groups_as_sketch:
            by_special_processing = self.group_by_special_processing(paths)

        logger.debug(f"Organized paths: {len(closed)} closed, {len(open_)} open, "
                     f"{len(construction)} construction")

        return OrganizedPathSet(
            closed=tuple(closed),
            open=tuple(open_),
            construction=tuple(construction),
            by_special_processing=by_special_processing,
        )

    @staticmethod
    def group_by_special_processing(paths: Sequence[Path]) -> Dict[str, Tuple[Path, ...]]:
        groups: Dict[str, List[Path]] = {'default': []}
        for path in paths:
            directive = path.special_processing
            key = directive.tag if directive is not None else 'default'
            groups.setdefault(key, []).append(path)
        return {key: tuple(group) for key, group in groups.items()}

    def sketch_groups(self, organized: OrganizedPathSet) -> List[SketchGroup]:
        """Group non-construction paths into sketches per the active policy"""
        policy = self.options.grouping_policy
        groups = []

        if policy is GroupingPolicy.OPEN_CLOSED:
            if organized.closed:
                groups.append(SketchGroup(self.CLOSED_SKETCH, organized.closed))
            if organized.open:
                groups.append(SketchGroup(self.OPEN_SKETCH, organized.open))

        elif policy is GroupingPolicy.PER_PATH:
            for index, path in enumerate(organized.closed + organized.open, 1):
                groups.append(SketchGroup(path.name or f"Sketch{index}", (path,)))

        else:
            all_paths = organized.closed + organized.open
            if all_paths:
                groups.append(SketchGroup(self.ALL_SKETCH, all_paths))

        logger.debug(f"Grouping policy {policy.value}: {len(groups)} sketch group(s)")
        return groups
