"""Microphone capture backends built on ``sounddevice`` input streams.

Two flavours share the same capability interface (acquire, start, stop, read,
release):

* ``StreamingRecorderBackend`` keeps callback chunks in memory and renders a
  WAV container on ``read()``.
* ``FileRecorderBackend`` writes frames straight into a temporary WAV file
  and hands back its contents; the file is removed on ``release()``.

PortAudio invokes the stream callback on its own thread. Chunks are copied
and handed to the event loop with ``call_soon_threadsafe``; anything that
arrives after ``release()`` is dropped.
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
import tempfile
import wave
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import numpy as np

from .config import ClientSettings

logger = logging.getLogger(__name__)


class InputStream(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def close(self) -> None: ...


StreamFactory = Callable[..., InputStream]


def sounddevice_stream_factory(
    *,
    samplerate: int,
    channels: int,
    callback: Callable[..., None],
) -> InputStream:
    """Open a float32 ``sounddevice.InputStream``."""

    import sounddevice as sd

    try:
        return sd.InputStream(
            samplerate=samplerate,
            channels=channels,
            dtype="float32",
            callback=callback,
        )
    except sd.PortAudioError as exc:
        message = str(exc).lower()
        if "permission" in message or "access denied" in message:
            raise PermissionError(str(exc)) from exc
        raise


def to_pcm16(chunks: list[np.ndarray]) -> bytes:
    """Concatenate float chunks in [-1, 1] into little-endian 16-bit PCM."""

    data = np.concatenate(chunks, axis=0)
    scaled = np.int16(np.clip(data, -1.0, 1.0) * 32767)
    return scaled.tobytes()


class _SoundDeviceBackend(ABC):
    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._stream_factory = stream_factory or sounddevice_stream_factory
        self._stream: Optional[InputStream] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._on_error: Optional[Callable[[BaseException], None]] = None
        self._recording = False
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def acquire(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stream = self._stream_factory(
            samplerate=self._settings.sample_rate,
            channels=self._settings.channels,
            callback=self._callback,
        )

    async def start(self, on_error: Callable[[BaseException], None]) -> None:
        if self._stream is None:
            raise RuntimeError("start() called before acquire()")
        self._on_error = on_error
        self._prepare()
        self._recording = True
        self._stream.start()

    async def stop(self) -> None:
        self._recording = False
        if self._stream is not None:
            self._stream.stop()
        self._finalize()

    @abstractmethod
    async def read(self) -> Optional[bytes]: ...

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._recording = False
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
            finally:
                stream.close()
        self._cleanup()

    def _callback(self, indata: np.ndarray, frames: int, time: Any, status: Any) -> None:
        if self._released or not self._recording or self._loop is None:
            return
        if status:
            logger.debug("Input stream status: %s", status)
        try:
            self._loop.call_soon_threadsafe(self._deliver, indata.copy())
        except RuntimeError:
            # Loop already closed.
            return

    def _deliver(self, chunk: np.ndarray) -> None:
        if self._released or not self._recording:
            return
        try:
            self._on_chunk(chunk)
        except OSError as exc:
            self._recording = False
            if self._on_error is not None:
                self._on_error(exc)

    def _prepare(self) -> None:
        pass

    @abstractmethod
    def _on_chunk(self, chunk: np.ndarray) -> None: ...

    def _finalize(self) -> None:
        pass

    def _cleanup(self) -> None:
        pass


class StreamingRecorderBackend(_SoundDeviceBackend):
    """Accumulate chunks in memory and encode a WAV container on read."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        super().__init__(settings, stream_factory=stream_factory)
        self._chunks: list[np.ndarray] = []

    def _prepare(self) -> None:
        self._chunks = []

    def _on_chunk(self, chunk: np.ndarray) -> None:
        self._chunks.append(chunk)

    async def read(self) -> Optional[bytes]:
        if not self._chunks:
            return None

        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wf:
            wf.setnchannels(self._settings.channels)
            wf.setsampwidth(2)
            wf.setframerate(self._settings.sample_rate)
            wf.writeframes(to_pcm16(self._chunks))
        return buffer.getvalue()

    def _cleanup(self) -> None:
        self._chunks = []


class FileRecorderBackend(_SoundDeviceBackend):
    """Write frames into a temporary WAV file, deleted on release."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        stream_factory: StreamFactory | None = None,
        directory: str | os.PathLike[str] | None = None,
    ) -> None:
        super().__init__(settings, stream_factory=stream_factory)
        self._directory = directory
        self._path: Optional[Path] = None
        self._writer: Optional[wave.Wave_write] = None
        self._frames_written = 0

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _prepare(self) -> None:
        fd, name = tempfile.mkstemp(suffix=".wav", dir=self._directory)
        os.close(fd)
        self._path = Path(name)
        self._writer = wave.open(str(self._path), "wb")
        self._writer.setnchannels(self._settings.channels)
        self._writer.setsampwidth(2)
        self._writer.setframerate(self._settings.sample_rate)

    def _on_chunk(self, chunk: np.ndarray) -> None:
        if self._writer is None:
            return
        self._writer.writeframes(to_pcm16([chunk]))
        self._frames_written += len(chunk)

    def _finalize(self) -> None:
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()

    async def read(self) -> Optional[bytes]:
        if self._path is None or self._frames_written == 0 or not self._path.exists():
            return None
        return self._path.read_bytes()

    def _cleanup(self) -> None:
        self._finalize()
        path, self._path = self._path, None
        if path is not None:
            path.unlink(missing_ok=True)


BACKENDS: dict[str, type[_SoundDeviceBackend]] = {
    "stream": StreamingRecorderBackend,
    "file": FileRecorderBackend,
}


__all__ = [
    "BACKENDS",
    "FileRecorderBackend",
    "InputStream",
    "StreamingRecorderBackend",
    "sounddevice_stream_factory",
    "to_pcm16",
]
