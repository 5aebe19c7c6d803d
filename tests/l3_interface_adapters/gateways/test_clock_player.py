"""Tests for VirtualClockPlayer — driven by a hand-cranked clock."""

from __future__ import annotations

import asyncio

import pytest

from shadow_drill.l1_entities.player_state import PlayerState
from shadow_drill.l3_interface_adapters.gateways.clock_player import VirtualClockPlayer


class ManualClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def rig():
    clock = ManualClock()
    player = VirtualClockPlayer(clock=clock)
    events: list = []
    player.bind(on_ready=lambda: events.append('ready'), on_state_change=events.append)
    player.load('vid123', 10.0, 20.0)
    return player, clock, events


class TestVirtualClockPlayer:
    def test_load_cues_and_reports_ready(self, rig):
        player, _, events = rig
        assert events == ['ready']
        assert player.state == PlayerState.CUED
        assert player.video_id == 'vid123'
        assert player.get_current_time() == 10.0

    def test_playhead_follows_clock(self, rig):
        player, clock, events = rig
        player.play()
        clock.now += 2.5

        assert events[-1] == PlayerState.PLAYING
        assert player.get_current_time() == pytest.approx(12.5)

    def test_rate_scales_and_reanchors(self, rig):
        player, clock, _ = rig
        player.play()
        clock.now += 2.0
        player.set_rate(0.5)
        clock.now += 2.0

        assert player.get_current_time() == pytest.approx(13.0)

    def test_reaching_end_reports_ended(self, rig):
        player, clock, events = rig
        player.play()
        clock.now += 30.0

        assert player.get_current_time() == 20.0
        assert player.state == PlayerState.ENDED
        assert events[-1] == PlayerState.ENDED

    def test_pause_freezes_position(self, rig):
        player, clock, events = rig
        player.play()
        clock.now += 3.0
        player.pause()
        clock.now += 5.0

        assert events[-1] == PlayerState.PAUSED
        assert player.get_current_time() == pytest.approx(13.0)

    def test_pause_when_not_playing_is_silent(self, rig):
        player, _, events = rig
        player.pause()
        assert events == ['ready']

    def test_seek_is_silent_and_clamped(self, rig):
        player, _, events = rig
        player.seek(15.0)
        assert player.get_current_time() == 15.0
        player.seek(99.0)
        assert player.get_current_time() == 20.0
        assert events == ['ready']

    def test_seek_after_end_leaves_ended_state(self, rig):
        player, clock, events = rig
        player.play()
        clock.now += 30.0
        player.get_current_time()

        player.seek(12.0)

        assert player.state == PlayerState.PAUSED
        assert events[-1] == PlayerState.ENDED

    def test_play_at_end_restarts_from_start(self, rig):
        player, clock, _ = rig
        player.play()
        clock.now += 30.0
        player.get_current_time()

        player.play()
        clock.now += 1.0

        assert player.get_current_time() == pytest.approx(11.0)

    def test_destroy_stops_events(self, rig):
        player, _, events = rig
        player.destroy()
        player.play()
        assert events == ['ready']
        assert player.video_id is None


class TestEventLoopDelivery:
    @pytest.mark.asyncio
    async def test_events_delivered_on_loop_and_end_timer_fires(self):
        player = VirtualClockPlayer(loop=asyncio.get_running_loop())
        events: list = []
        player.bind(on_ready=lambda: events.append('ready'), on_state_change=events.append)

        player.load('vid123', 0.0, 0.05)
        player.play()
        assert events == []

        await asyncio.sleep(0.2)

        assert events == ['ready', PlayerState.PLAYING, PlayerState.ENDED]
