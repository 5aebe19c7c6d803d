"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from pathlib import Path

from shadow_drill.l1_entities.config import AppConfig
from shadow_drill.l2_use_cases.ports.audio_output import AudioOutput
from shadow_drill.l2_use_cases.ports.player import Player
from shadow_drill.l2_use_cases.ports.recorder import Recorder
from shadow_drill.l3_interface_adapters.controllers.session_controller import SessionController
from shadow_drill.l3_interface_adapters.gateways.clock_player import VirtualClockPlayer
from shadow_drill.l3_interface_adapters.gateways.file_store import FilePracticeStore
from shadow_drill.l3_interface_adapters.gateways.sounddevice_recorder import (
    SounddeviceAudioOutput,
    SounddeviceRecorder,
)


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(self, config: AppConfig, user_id: str | None = None) -> None:
        self.config = config

        self.store = FilePracticeStore(Path(config.storage.directory), signing_key=config.storage.signing_key)
        self.player: Player = VirtualClockPlayer()
        self.recorder: Recorder = SounddeviceRecorder(
            sample_rate=config.recording.sample_rate,
            channels=config.recording.channels,
        )
        self.audio_output: AudioOutput = SounddeviceAudioOutput()

        self.controller = SessionController(
            config=config,
            player=self.player,
            recorder=self.recorder,
            store=self.store,
            user_id=user_id,
        )
