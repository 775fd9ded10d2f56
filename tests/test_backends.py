"""Capture backends driven by a fake input stream."""

from __future__ import annotations

import asyncio
import io
import wave

import numpy as np
import pytest

from client.backends import (
    BACKENDS,
    FileRecorderBackend,
    StreamingRecorderBackend,
    _SoundDeviceBackend,
    to_pcm16,
)
from client.config import ClientSettings


class FakeStream:
    def __init__(self, callback) -> None:
        self.callback = callback
        self.started = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False

    def close(self) -> None:
        self.closed = True

    def push(self, samples) -> None:
        indata = np.asarray(samples, dtype=np.float32).reshape(-1, 1)
        self.callback(indata, len(indata), None, None)


class FakeStreamFactory:
    def __init__(self) -> None:
        self.stream: FakeStream | None = None
        self.kwargs: dict = {}

    def __call__(self, *, samplerate, channels, callback) -> FakeStream:
        self.kwargs = {"samplerate": samplerate, "channels": channels}
        self.stream = FakeStream(callback)
        return self.stream


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(sample_rate=8000, channels=1)


def _frames(wav_bytes: bytes) -> tuple[int, int]:
    with wave.open(io.BytesIO(wav_bytes), "rb") as wf:
        return wf.getframerate(), wf.getnframes()


def test_backend_base_cannot_be_used_directly():
    with pytest.raises(TypeError):
        _SoundDeviceBackend()
    assert all(not backend.__abstractmethods__ for backend in BACKENDS.values())


def test_to_pcm16_clips_and_scales():
    pcm = to_pcm16([np.array([[0.0], [1.0]]), np.array([[-2.0]])])

    assert np.frombuffer(pcm, dtype=np.int16).tolist() == [0, 32767, -32767]


async def test_streaming_backend_builds_wav_from_callback_chunks(settings):
    factory = FakeStreamFactory()
    backend = StreamingRecorderBackend(settings, stream_factory=factory)

    await backend.acquire()
    await backend.start(lambda exc: None)
    factory.stream.push([0.1] * 80)
    factory.stream.push([-0.1] * 40)
    await asyncio.sleep(0)
    await backend.stop()

    audio = await backend.read()

    assert factory.kwargs == {"samplerate": 8000, "channels": 1}
    assert _frames(audio) == (8000, 120)
    await backend.release()
    assert factory.stream.closed


async def test_streaming_backend_without_audio_reads_none(settings):
    backend = StreamingRecorderBackend(settings, stream_factory=FakeStreamFactory())

    await backend.acquire()
    await backend.start(lambda exc: None)
    await backend.stop()

    assert await backend.read() is None
    await backend.release()


async def test_chunks_after_release_are_dropped(settings):
    factory = FakeStreamFactory()
    backend = StreamingRecorderBackend(settings, stream_factory=factory)
    await backend.acquire()
    await backend.start(lambda exc: None)

    await backend.release()
    factory.stream.push([0.5] * 10)
    await asyncio.sleep(0)

    assert backend.released
    assert await backend.read() is None


async def test_release_is_idempotent(settings):
    factory = FakeStreamFactory()
    backend = StreamingRecorderBackend(settings, stream_factory=factory)
    await backend.acquire()

    await backend.release()
    await backend.release()

    assert factory.stream.closed


async def test_file_backend_writes_and_deletes_temp_file(settings, tmp_path):
    factory = FakeStreamFactory()
    backend = FileRecorderBackend(settings, stream_factory=factory, directory=tmp_path)

    await backend.acquire()
    await backend.start(lambda exc: None)
    path = backend.path
    assert path is not None and path.parent == tmp_path

    factory.stream.push([0.2] * 64)
    await asyncio.sleep(0)
    await backend.stop()

    audio = await backend.read()
    assert _frames(audio) == (8000, 64)

    await backend.release()
    assert not path.exists()
    assert backend.path is None


async def test_file_backend_write_error_reports_to_state_machine(settings, tmp_path):
    factory = FakeStreamFactory()
    backend = FileRecorderBackend(settings, stream_factory=factory, directory=tmp_path)
    errors: list[BaseException] = []

    await backend.acquire()
    await backend.start(errors.append)

    def broken(chunk):
        raise OSError("disk full")

    backend._on_chunk = broken
    factory.stream.push([0.2] * 4)
    await asyncio.sleep(0)

    assert len(errors) == 1
    assert isinstance(errors[0], OSError)
    await backend.release()
