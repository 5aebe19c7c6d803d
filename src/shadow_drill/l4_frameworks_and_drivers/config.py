"""Built-in configuration defaults — lives in L4, not domain."""

from __future__ import annotations

from shadow_drill.l1_entities.config import AppConfig
from shadow_drill.l3_interface_adapters.gateways.paths import DATA_DIR
from shadow_drill.l3_interface_adapters.gateways.yaml_config_loader import merge_layers

APP_CONFIG_DEFAULTS: dict = {
    'playback': {
        'poll_interval': 0.05,
        'rates': [0.5, 0.75, 0.9, 1.0],
        'default_rate': 1.0,
        'seek_settle_delay': 0.2,
        'end_pause_tolerance': 0.2,
    },
    'recording': {
        'sample_rate': 44100,
        'channels': 1,
    },
    'storage': {
        'directory': str(DATA_DIR),
        'playback_url_ttl': 300,
        'signing_key': '',
    },
    'user': {
        'id': 'local',
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    return AppConfig.model_validate(merge_layers(APP_CONFIG_DEFAULTS, raw))
