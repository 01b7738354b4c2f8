"""Tests for the shared configuration, logging and path helpers."""

import logging

import pytest
import yaml

from shared_utils import (
    ensure_directory, get_config_value, get_logger, load_config, merge_config, resolve_paths,
    save_config, setup_logging, validate_config, validate_file_exists
)
from shared_utils.config_utils import CONFIG_ENV_VAR


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        'constraints': {'max_slope_percent': 40},
        'processing': {'num_workers': 2},
        'logging': {'level': 'DEBUG'},
    }))
    return path


class TestLoadConfig:

    def test_explicit_path(self, config_file):
        config = load_config(config_file)
        assert config['constraints']['max_slope_percent'] == 40
        assert config['_meta']['config_file'].endswith("config.yaml")

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_component_default(self):
        config = load_config(component_name='constraint_model')
        assert config['constraints']['landcover_classes'] == [41, 42, 43]
        assert config['constraints']['road_buffer_distance'] == 2000

    def test_environment_variable(self, config_file, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
        config = load_config(default_config_name="not_here.yaml")
        assert config['processing']['num_workers'] == 2


class TestConfigHelpers:

    def test_validate_sections(self):
        assert validate_config({'constraints': {}, 'logging': {}}, ['constraints', 'logging'])
        with pytest.raises(ValueError, match="processing"):
            validate_config({'constraints': {}}, ['constraints', 'processing'])

    def test_get_config_value(self):
        config = {'data': {'roads_files': ['a.gpkg']}}
        assert get_config_value(config, 'data.roads_files') == ['a.gpkg']
        assert get_config_value(config, 'data.dem_file', 'dem.tif') == 'dem.tif'
        assert get_config_value(config, 'output.prefix') is None

    def test_merge_config(self):
        base = {'constraints': {'max_slope_percent': 35, 'gap_status_codes': [1]}, 'logging': {'level': 'INFO'}}
        merged = merge_config(base, {'constraints': {'max_slope_percent': 40}})
        assert merged['constraints'] == {'max_slope_percent': 40, 'gap_status_codes': [1]}
        assert base['constraints']['max_slope_percent'] == 35

    def test_save_config_strips_metadata(self, config_file, tmp_path):
        config = load_config(config_file)
        output = tmp_path / "out" / "saved.yaml"
        save_config(config, output)
        saved = yaml.safe_load(output.read_text())
        assert '_meta' not in saved
        assert saved['processing'] == {'num_workers': 2}


class TestLoggingAndPaths:

    def test_component_logger_name(self):
        assert get_logger('constraint_analysis.masks').name == 'forest_constraints.constraint_analysis.masks'

    def test_setup_logging_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logging('INFO', 'constraint_analysis', log_file=log_file)
        logger.info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

    def test_paths(self, tmp_path):
        created = ensure_directory(tmp_path / "a" / "b")
        assert created.is_dir()
        assert resolve_paths("x.gpkg", tmp_path) == [tmp_path.resolve() / "x.gpkg"]
        with pytest.raises(FileNotFoundError):
            validate_file_exists(tmp_path / "missing.tif", "DEM")
        with pytest.raises(ValueError):
            validate_file_exists(created)
