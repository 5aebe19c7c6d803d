"""Gateway: sounddevice microphone recorder — implements Recorder port."""

from __future__ import annotations

import asyncio
import io
import logging
import queue
import wave

import numpy as np
import sounddevice as sd

from shadow_drill.l1_entities.errors import DeviceError, DeviceUnavailableError, MicrophonePermissionError
from shadow_drill.l1_entities.recording import AudioBlob

log = logging.getLogger('shd.audio')

_PERMISSION_HINTS = ('permission', 'not permitted', 'access denied', 'unauthorized')


def encode_wav(samples: np.ndarray, sample_rate: int, channels: int = 1) -> bytes:
    """Encode float32 samples in [-1, 1] as 16-bit PCM WAV bytes."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)  # int16
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    """Decode 16-bit PCM WAV bytes into float32 samples shaped (frames, channels)."""
    with wave.open(io.BytesIO(data), 'rb') as wf:
        channels = wf.getnchannels()
        sample_rate = wf.getframerate()
        frames = wf.readframes(wf.getnframes())
    samples = np.frombuffer(frames, dtype=np.int16).astype(np.float32) / 32767
    return samples.reshape(-1, channels), sample_rate


class SounddeviceRecorder:
    """Captures the default input device into a single WAV blob per run."""

    def __init__(self, sample_rate: int = 44100, channels: int = 1) -> None:
        self._sample_rate = sample_rate
        self._channels = channels
        self._stream: sd.InputStream | None = None
        self._queue: queue.Queue[np.ndarray] = queue.Queue()
        self._starting = False

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    async def start(self) -> None:
        if self._stream is not None or self._starting:
            raise RuntimeError('Recorder already started')
        self._starting = True
        # Opening can block on the OS microphone permission prompt.
        opening = asyncio.ensure_future(asyncio.to_thread(self._open_stream))
        try:
            stream = await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The thread cannot be interrupted; close whatever it opens.
            opening.add_done_callback(self._discard_late_stream)
            raise
        except Exception:
            self._starting = False
            raise
        self._starting = False
        self._stream = stream
        log.info('Microphone capture started (%d Hz, %d ch)', self._sample_rate, self._channels)

    def _discard_late_stream(self, opening: asyncio.Future) -> None:
        self._starting = False
        if opening.cancelled() or opening.exception() is not None:
            return
        self._close_stream(opening.result())
        self._drain()
        log.info('Closed a microphone stream whose start was cancelled')

    def _open_stream(self) -> sd.InputStream:
        try:
            sd.query_devices(kind='input')
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceUnavailableError(str(e)) from e

        self._drain()

        def _callback(indata, frames, time_info, status):
            if status:
                log.warning('PortAudio input status: %s', status)
            self._queue.put(indata.copy())

        try:
            stream = sd.InputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype='float32',
                callback=_callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            message = str(e).lower()
            if any(hint in message for hint in _PERMISSION_HINTS):
                raise MicrophonePermissionError(str(e)) from e
            raise DeviceError(str(e)) from e
        return stream

    def stop(self) -> AudioBlob | None:
        if self._stream is None:
            return None
        stream = self._stream
        self._stream = None
        self._close_stream(stream)

        samples = self._drain()
        if samples is None:
            samples = np.zeros((0, self._channels), dtype=np.float32)
        duration = len(samples) / self._sample_rate
        log.info('Microphone capture stopped (%.2fs)', duration)
        return AudioBlob(
            data=encode_wav(samples, self._sample_rate, self._channels),
            mime_type='audio/wav',
            duration_seconds=duration,
        )

    def _close_stream(self, stream: sd.InputStream) -> None:
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as e:
            log.warning('Error closing input stream: %s', e)

    def _drain(self) -> np.ndarray | None:
        """Read all queued chunks."""
        chunks = []
        while not self._queue.empty():
            try:
                chunks.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return np.concatenate(chunks) if chunks else None


class SounddeviceAudioOutput:
    """Plays WAV bytes on the default output device — implements AudioOutput port."""

    def play(self, wav_bytes: bytes) -> None:
        samples, sample_rate = decode_wav(wav_bytes)
        sd.stop()
        sd.play(samples, samplerate=sample_rate)

    def stop(self) -> None:
        sd.stop()
