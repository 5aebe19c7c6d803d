"""Tests for TranscriptSegment and clock formatting."""

import pytest
from pydantic import ValidationError

from shadow_drill.l1_entities.transcript import TranscriptSegment, format_clock


class TestTranscriptSegment:
    def test_text_is_stripped(self):
        seg = TranscriptSegment(text='  hello world \n', offset=1000, duration=500)
        assert seg.text == 'hello world'

    def test_end_is_offset_plus_duration(self):
        seg = TranscriptSegment(text='hi', offset=1000, duration=500)
        assert seg.end == 1500

    def test_duration_defaults_to_zero(self):
        assert TranscriptSegment(text='hi', offset=0).duration == 0

    def test_blank_text_rejected(self):
        with pytest.raises(ValidationError):
            TranscriptSegment(text='   ', offset=0)

    def test_negative_offset_rejected(self):
        with pytest.raises(ValidationError):
            TranscriptSegment(text='hi', offset=-1)

    def test_frozen(self):
        seg = TranscriptSegment(text='hi', offset=0)
        with pytest.raises(ValidationError):
            seg.text = 'changed'


class TestFormatClock:
    def test_minutes_and_seconds(self):
        assert format_clock(75.9) == '01:15'

    def test_zero(self):
        assert format_clock(0) == '00:00'

    def test_negative_clamped(self):
        assert format_clock(-3) == '00:00'

    def test_past_the_hour(self):
        assert format_clock(3725) == '1:02:05'
