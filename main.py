# ============================================================================
# main.py - Main Converter Orchestration
# ============================================================================

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Union

import yaml

from config import BuildOptions, Config, InvalidConfiguration
from curve_normalizer import CurveNormalizer
from feature_builder import BuildResult, FeatureBuilder
from path_classifier import Path, PathClassifier, RawPath
from path_organizer import PathOrganizer
from path_parser import MalformedPathData, PathCommandParser
from sketch_builder import ConstraintInferrer, SketchBuilder

logger = logging.getLogger(__name__)

PathInput = Union[Path, RawPath, Mapping[str, Any], str]


class SvgToFeaturesConverter:
    """Main orchestrator for SVG path to CAD feature conversion"""

    def __init__(self, options: Optional[BuildOptions] = None,
                 constraint_inferrer: Optional[ConstraintInferrer] = None,
                 epsilon: float = Config.PATH_CLOSURE_TOLERANCE):
        self.options = options or BuildOptions()
        self.parser = PathCommandParser()
        self.normalizer = CurveNormalizer()
        self.classifier = PathClassifier(epsilon=epsilon, units=self.options.units)
        self.organizer = PathOrganizer(self.options)
        self.sketch_builder = SketchBuilder(self.options, constraint_inferrer)
        self.feature_builder = FeatureBuilder(self.options)
        self.paths: List[Path] = []
        self.result: Optional[BuildResult] = None
        self.error_log: List[str] = []

    def process(self, items: Iterable[PathInput]) -> BuildResult:
        """Execute the complete conversion workflow"""
        self.error_log = []
        self.paths = self.prepare_paths(items)

        if not self.paths:
            logger.warning("No paths found, returning an empty result")
            self.result = BuildResult()
            return self.result

        organized = self.organizer.organize(self.paths)
        groups = self.organizer.sketch_groups(organized)
        sketches = self.sketch_builder.build(organized, groups, self.error_log)
        features_3d = self.feature_builder.build(sketches, organized, self.error_log)

        self.result = BuildResult(sketches=tuple(sketches), features_3d=tuple(features_3d))
        logger.debug(f"Created {len(sketches)} sketches and {len(features_3d)} 3D features")
        return self.result

    def prepare_paths(self, items: Iterable[PathInput]) -> List[Path]:
        """Classify raw inputs; already classified Paths pass through"""
        paths = []
        for index, item in enumerate(items):
            if isinstance(item, Path):
                paths.append(item)
                continue

            if isinstance(item, str):
                item = RawPath(data=item)
            elif isinstance(item, Mapping):
                item = RawPath.from_dict(item)
            elif not isinstance(item, RawPath):
                message = f"Input {index} skipped: unsupported type {type(item).__name__}"
                logger.warning(message)
                self.error_log.append(message)
                continue
            if item.path_id is None:
                item = replace(item, path_id=f"path-{index}")

            paths.extend(self.process_raw_path(item))
        return paths

    def process_raw_path(self, raw: RawPath) -> List[Path]:
        """Parse, normalize and classify one raw path; one Path per subpath"""
        try:
            commands = self.parser.parse(raw.data, raw.path_id)
            paths = []
            for subpath in self.parser.split_subpaths(commands):
                segments = self.normalizer.normalize(subpath, raw.path_id, self.error_log)
                if segments:
                    paths.append(self.classifier.classify(segments, raw))
            if not paths:
                raise MalformedPathData("path has no drawable segments", raw.path_id)
            return paths
        except MalformedPathData as e:
            message = f"Path skipped: {e}"
            logger.warning(message)
            self.error_log.append(message)
            return []

    def get_error_log(self) -> List[str]:
        """Get list of all errors encountered"""
        return self.error_log

    def print_summary(self, file=None):
        """Print processing summary"""
        file = file or sys.stdout
        print("=" * 60, file=file)
        print("PROCESSING SUMMARY", file=file)
        print("=" * 60, file=file)
        print(f"Paths classified: {len(self.paths)}", file=file)

        if self.paths:
            closed = sum(1 for p in self.paths if p.closed)
            construction = sum(1 for p in self.paths if p.is_construction)
            print(f"  closed={closed}, open={len(self.paths) - closed}, construction={construction}", file=file)

        if self.result is not None:
            print(f"Sketches created: {len(self.result.sketches)}", file=file)
            for sketch in self.result.sketches:
                print(f"  - {sketch.name}: {len(sketch.entities)} entities", file=file)
            print(f"Features created: {len(self.result.features_3d)}", file=file)
            for feature in self.result.features_3d:
                print(f"  - {feature.name} ({feature.kind})", file=file)

        if self.error_log:
            print("\nErrors Encountered:", file=file)
            for i, error in enumerate(self.error_log, 1):
                print(f"  {i}. {error}", file=file)

        print("=" * 60, file=file)


def build(items: Iterable[PathInput] = (),
          options: Union[BuildOptions, Mapping[str, Any], None] = None) -> BuildResult:
    """Build sketches and 3D features from paths; never raises for bad path data"""
    if not isinstance(options, BuildOptions):
        options = BuildOptions.from_dict(options)
    return SvgToFeaturesConverter(options).process(items)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='svg2features',
        description='Convert SVG path data into CAD sketch and feature descriptors',
    )
    parser.add_argument('paths', help='JSON file holding a list of paths')
    parser.add_argument('--config', help='YAML file with build options')
    parser.add_argument('-o', '--output', help='write the result JSON here instead of stdout')
    parser.add_argument('--summary', action='store_true', help='print a processing summary to stderr')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s: %(message)s')

    try:
        options = BuildOptions.from_yaml(args.config) if args.config else BuildOptions()
    except (OSError, yaml.YAMLError, InvalidConfiguration) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        with open(args.paths, 'r', encoding='utf-8') as f:
            items = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read paths: {e}")
        return 2

    if not isinstance(items, list):
        logger.error("Paths file must hold a JSON list")
        return 2

    converter = SvgToFeaturesConverter(options)
    result = converter.process(items)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(result.to_json())
        logger.info(f"Result written to {args.output}")
    else:
        print(result.to_json())

    if args.summary:
        converter.print_summary(file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
