"""BuildOptions validation, key mapping and YAML loading."""

import pytest

from config import BuildOptions, GroupingPolicy, InvalidConfiguration, convert_length, normalize_unit


def test_defaults_follow_original_flags(options):
    assert options.separate_sketches is True
    assert options.groups_as_sketch is True
    assert options.separate_open_closed is True
    assert options.extrude_open_paths is True
    assert options.create_3d is True
    assert options.default_extrusion == 10.0
    assert options.units == 'mm'
    assert options.decimal_precision == 4


def test_unit_aliases_are_normalized():
    assert BuildOptions(units='in').units == 'inch'
    assert BuildOptions(units='Inches').units == 'inch'
    assert normalize_unit('MM') == 'mm'
    assert normalize_unit('furlong') is None


@pytest.mark.parametrize('kwargs', [
    {'decimal_precision': 'four'},
    {'decimal_precision': -1},
    {'decimal_precision': True},
    {'default_extrusion': 0},
    {'default_extrusion': '10'},
    {'open_path_width': -1.0},
    {'units': 'cm'},
    {'create_3d': 'yes'},
])
def test_invalid_options_fail_fast(kwargs):
    with pytest.raises(InvalidConfiguration):
        BuildOptions(**kwargs)


def test_from_dict_accepts_camel_and_snake_case():
    options = BuildOptions.from_dict({'create3D': False, 'decimal_precision': 2, 'defaultExtrusion': 5})
    assert options.create_3d is False
    assert options.decimal_precision == 2
    assert options.default_extrusion == 5


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(InvalidConfiguration, match='Unknown option'):
        BuildOptions.from_dict({'separateEverything': True})


def test_from_dict_none_gives_defaults():
    assert BuildOptions.from_dict(None) == BuildOptions()


def test_grouping_policy_precedence():
    assert BuildOptions().grouping_policy is GroupingPolicy.OPEN_CLOSED
    assert BuildOptions(separate_open_closed=False).grouping_policy is GroupingPolicy.PER_PATH
    single = BuildOptions(separate_open_closed=False, separate_sketches=False)
    assert single.grouping_policy is GroupingPolicy.SINGLE


def test_from_yaml(tmp_path):
    config_file = tmp_path / 'options.yaml'
    config_file.write_text("units: inch\nseparateOpenClosed: false\ndecimalPrecision: 3\n")
    options = BuildOptions.from_yaml(config_file)
    assert options.units == 'inch'
    assert options.separate_open_closed is False
    assert options.decimal_precision == 3


def test_from_yaml_empty_file(tmp_path):
    config_file = tmp_path / 'empty.yaml'
    config_file.write_text("")
    assert BuildOptions.from_yaml(config_file) == BuildOptions()


def test_convert_length():
    assert convert_length(5, 'inch', 'mm') == pytest.approx(127.0)
    assert convert_length(25.4, 'mm', 'inch') == pytest.approx(1.0)
    assert convert_length(3, 'mm', 'mm') == 3
    with pytest.raises(InvalidConfiguration):
        convert_length(1, 'mm', 'cubit')
