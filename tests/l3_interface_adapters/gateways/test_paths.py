"""Tests for platformdirs-based path constants."""

from shadow_drill.l3_interface_adapters.gateways.paths import APP_NAME, CONFIG_DIR, DATA_DIR, DEFAULT_CONFIG_PATHS


def test_dirs_are_app_scoped():
    assert APP_NAME in str(CONFIG_DIR)
    assert APP_NAME in str(DATA_DIR)


def test_default_config_candidates():
    assert [p.name for p in DEFAULT_CONFIG_PATHS] == ['config.yaml', 'config.yml']
    assert all(p.parent == CONFIG_DIR for p in DEFAULT_CONFIG_PATHS)
