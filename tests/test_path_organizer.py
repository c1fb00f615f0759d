"""Bucketing and sketch grouping policies."""

from config import BuildOptions
from conftest import OPEN_POLYLINE, SQUARE, TRIANGLE
from path_organizer import PathOrganizer


def test_buckets(make_path, options):
    closed = make_path(SQUARE)
    open_ = make_path(OPEN_POLYLINE)
    construction = make_path(TRIANGLE, is_construction=True)

    organized = PathOrganizer(options).organize([closed, open_, construction])
    assert organized.closed == (closed,)
    assert organized.open == (open_,)
    assert organized.construction == (construction,)


def test_construction_not_preserved_is_treated_as_regular(make_path):
    construction = make_path(TRIANGLE, is_construction=True)
    organized = PathOrganizer(BuildOptions(preserve_construction=False)).organize([construction])
    assert organized.construction == ()
    assert organized.closed == (construction,)


def test_group_by_special_processing(make_path, options):
    plain = make_path(SQUARE)
    revolved = make_path(TRIANGLE, special_processing={'revolve': {'angle': 90}})

    organized = PathOrganizer(options).organize([plain, revolved])
    assert organized.by_special_processing['default'] == (plain,)
    assert organized.tagged('revolve') == (revolved,)
    assert organized.tagged('mirror') == ()


def test_no_directive_grouping_without_groups_as_sketch(make_path):
    organized = PathOrganizer(BuildOptions(groups_as_sketch=False)).organize([make_path(SQUARE)])
    assert organized.by_special_processing is None
    assert organized.tagged('extrude') == ()


def test_open_closed_policy(make_path, options):
    organizer = PathOrganizer(options)
    organized = organizer.organize([make_path(SQUARE), make_path(OPEN_POLYLINE), make_path(TRIANGLE)])
    groups = organizer.sketch_groups(organized)
    assert [g.name for g in groups] == ['ClosedPaths', 'OpenPaths']
    assert len(groups[0].paths) == 2


def test_open_closed_policy_omits_empty_groups(make_path, options):
    organizer = PathOrganizer(options)
    groups = organizer.sketch_groups(organizer.organize([make_path(SQUARE)]))
    assert [g.name for g in groups] == ['ClosedPaths']


def test_per_path_policy(make_path):
    organizer = PathOrganizer(BuildOptions(separate_open_closed=False))
    paths = [make_path(OPEN_POLYLINE, name='Rail'), make_path(SQUARE), make_path(TRIANGLE, name='Gusset')]
    groups = organizer.sketch_groups(organizer.organize(paths))
    # Closed paths come first, then open ones
    assert [g.name for g in groups] == ['Sketch1', 'Gusset', 'Rail']
    assert all(len(g.paths) == 1 for g in groups)


def test_single_policy(make_path):
    organizer = PathOrganizer(BuildOptions(separate_open_closed=False, separate_sketches=False))
    organized = organizer.organize([make_path(SQUARE), make_path(OPEN_POLYLINE)])
    groups = organizer.sketch_groups(organized)
    assert [g.name for g in groups] == ['AllPaths']
    assert len(groups[0].paths) == 2


def test_construction_is_never_grouped(make_path, options):
    organizer = PathOrganizer(options)
    organized = organizer.organize([make_path(TRIANGLE, is_construction=True)])
    assert organizer.sketch_groups(organized) == []
