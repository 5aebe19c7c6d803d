"""Tests for the dependency container."""

from __future__ import annotations

from shadow_drill.l3_interface_adapters.gateways.clock_player import VirtualClockPlayer
from shadow_drill.l3_interface_adapters.gateways.file_store import FilePracticeStore
from shadow_drill.l3_interface_adapters.gateways.sounddevice_recorder import (
    SounddeviceAudioOutput,
    SounddeviceRecorder,
)
from shadow_drill.l4_frameworks_and_drivers.config import build_app_config
from shadow_drill.l4_frameworks_and_drivers.container import DependencyContainer


class TestDependencyContainer:
    def test_creates_all_components(self, data_dir):
        config = build_app_config({'storage': {'directory': str(data_dir)}})

        container = DependencyContainer(config)

        assert container.config is config
        assert isinstance(container.store, FilePracticeStore)
        assert container.store.root == data_dir
        assert isinstance(container.player, VirtualClockPlayer)
        assert isinstance(container.recorder, SounddeviceRecorder)
        assert isinstance(container.audio_output, SounddeviceAudioOutput)
        assert container.controller.user_id == 'local'
        assert container.controller.rates == [0.5, 0.75, 0.9, 1.0]

    def test_user_override(self, data_dir):
        config = build_app_config({'storage': {'directory': str(data_dir)}})
        container = DependencyContainer(config, user_id='bob')
        assert container.controller.user_id == 'bob'
