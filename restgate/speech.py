"""Voice lookup and WAV output for text-to-speech audio."""

from __future__ import annotations

import json
import re
import wave
from typing import Any, BinaryIO, Callable, Iterable, Mapping, Union

_VOICE_ID = re.compile(r"[a-z0-9-]{20}")

Voices = Union[Iterable[Any], Callable[[], Iterable[Any]]]


class VoiceNotFoundError(LookupError):
    """No voice matches the requested name or identifier."""


def is_voice_id(value: str) -> bool:
    """Return True if value has the form of a voice identifier."""
    return _VOICE_ID.fullmatch(value) is not None


def _voice_field(voice: Any, key: str) -> str:
    if isinstance(voice, Mapping):
        return str(voice.get(key, "") or "")
    return str(getattr(voice, key, "") or "")


def resolve_voice_id(query: str, voices: Voices) -> str:
    """Return the identifier of the voice named or identified by query.

    A query in the form of a voice identifier is returned as it is, without
    consulting voices. Otherwise voices (or the result of calling it) is
    searched for a voice whose name matches ignoring case, or whose id
    matches exactly. Voices may be mappings or objects with ``name`` and
    ``id``.
    """
    if is_voice_id(query):
        return query
    candidates = voices() if callable(voices) else voices
    folded = query.casefold()
    for voice in candidates:
        voice_id = _voice_field(voice, "id")
        if _voice_field(voice, "name").casefold() == folded or voice_id == query:
            return voice_id
    raise VoiceNotFoundError(json.dumps(query))


class WavWriter:
    """Wraps 16-bit little-endian PCM data written to it in a WAV container.

    The stream must be seekable so the header can be completed on close.
    Incomplete frames are held back until more data arrives; any left over
    when the writer is closed are dropped. The stream itself is not closed.
    """

    def __init__(self, stream: BinaryIO, sample_rate: int, channels: int = 1) -> None:
        if sample_rate <= 0:
            raise ValueError(f"invalid sample rate {sample_rate}")
        if channels <= 0:
            raise ValueError(f"invalid number of channels {channels}")
        self._wave = wave.open(stream, "wb")
        self._wave.setnchannels(channels)
        self._wave.setsampwidth(2)
        self._wave.setframerate(sample_rate)
        self._frame_size = 2 * channels
        self._buf = bytearray()
        self._closed = False

    def write(self, data: bytes) -> int:
        """Buffer PCM data, write every complete frame, and return len(data)."""
        if self._closed:
            raise ValueError("write to closed WavWriter")
        self._buf.extend(data)
        self.flush()
        return len(data)

    def flush(self) -> None:
        """Write all complete frames held in the buffer."""
        if self._closed:
            return
        count = len(self._buf) - len(self._buf) % self._frame_size
        if count:
            self._wave.writeframes(bytes(self._buf[:count]))
            del self._buf[:count]

    def close(self) -> None:
        """Write any complete frames and finish the WAV header."""
        if self._closed:
            return
        self.flush()
        self._wave.close()
        self._closed = True

    def __enter__(self) -> "WavWriter":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()