"""
File-backed audio source.
Decodes with soundfile and streams through a sounddevice output stream.
"""
from __future__ import annotations
from typing import Any, Optional
import numpy as np
import soundfile as sf

from .config import AUDIO_CONFIG
from .types import ErrorCallback, LoadCallback, Unsubscribe
from ..utils.logger import logger

AudioArray = np.ndarray  # float32, shape (samples, channels)


def _subscribe(callbacks: list, callback) -> Unsubscribe:
    callbacks.append(callback)

    def unsubscribe() -> None:
        if callback in callbacks:
            callbacks.remove(callback)

    return unsubscribe


class FileAudioSource:
    """
    A seekable, playable source for one track.

    Setting `src` decodes the file and notifies the load (or error)
    listeners. Once playing, the position advances with the output stream;
    the engine only reads and corrects it.
    """
    __slots__ = (
        '_src', '_data', '_samplerate', '_frame', '_stream', '_paused',
        '_volume', '_muted', '_device', '_load_callbacks', '_error_callbacks'
    )

    def __init__(self, device: Optional[Any] = None) -> None:
        self._src: Optional[str] = None
        self._data: Optional[AudioArray] = None
        self._samplerate: int = 0
        self._frame: int = 0
        self._stream = None
        self._paused: bool = True
        self._volume: float = 1.0
        self._muted: bool = False
        self._device = device
        self._load_callbacks: list[LoadCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

    # --- Loading ---

    @property
    def src(self) -> Optional[str]:
        return self._src

    @src.setter
    def src(self, value: Optional[str]) -> None:
        self.pause()
        self._src = value or None
        self._data = None
        self._samplerate = 0
        self._frame = 0
        if self._src:
            self._load(self._src)

    def _load(self, path: str) -> None:
        logger.info(f"Loading source: {path}")
        try:
            data, samplerate = sf.read(path, dtype='float32', always_2d=True)
        except Exception as e:
            logger.error(f"Failed to load {path}: {e}", exc_info=True)
            for callback in list(self._error_callbacks):
                callback(e)
            return

        self._data = data
        self._samplerate = samplerate
        for callback in list(self._load_callbacks):
            callback()

    def on_load(self, callback: LoadCallback) -> Unsubscribe:
        return _subscribe(self._load_callbacks, callback)

    def on_error(self, callback: ErrorCallback) -> Unsubscribe:
        return _subscribe(self._error_callbacks, callback)

    @property
    def loaded(self) -> bool:
        return self._data is not None

    @property
    def duration(self) -> float:
        """Duration in seconds, 0 until loaded."""
        if self._data is None or self._samplerate <= 0:
            return 0.0
        return len(self._data) / self._samplerate

    # --- Position, volume, mute ---

    @property
    def current_time(self) -> float:
        if self._samplerate <= 0:
            return 0.0
        return self._frame / self._samplerate

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        total = len(self._data) if self._data is not None else 0
        frame = int(round(seconds * self._samplerate))
        self._frame = max(0, min(frame, total))

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = min(AUDIO_CONFIG.max_volume, max(AUDIO_CONFIG.min_volume, value))

    @property
    def muted(self) -> bool:
        return self._muted

    @muted.setter
    def muted(self, value: bool) -> None:
        self._muted = bool(value)

    @property
    def paused(self) -> bool:
        return self._paused

    # --- Playback ---

    def play(self) -> bool:
        """
        Start streaming from the current position.

        Returns:
            True if the stream is running
        """
        if self._data is None:
            return False
        if not self._paused:
            return True
        if self._frame >= len(self._data):
            return False

        import sounddevice as sd

        data = self._data
        channels = AUDIO_CONFIG.playback_channels

        def playback_callback(
            outdata: np.ndarray,
            frames: int,
            time: object,
            status: sd.CallbackFlags
        ) -> None:
            """Real-time audio callback."""
            try:
                outdata.fill(0)
                start = self._frame
                end = min(start + frames, len(data))
                count = end - start

                if count > 0 and not self._muted:
                    segment = data[start:end]
                    if segment.shape[1] == 1:
                        # Mono to all output channels
                        outdata[:count] += segment * self._volume
                    else:
                        outdata[:count] += segment[:, :channels] * self._volume

                self._frame = end
            except Exception as e:
                logger.error(f"Playback callback error: {e}", exc_info=True)
                raise sd.CallbackStop()

            if end >= len(data):
                raise sd.CallbackStop()

        def on_finished() -> None:
            self._paused = True

        self._close_stream()
        try:
            self._stream = sd.OutputStream(
                samplerate=self._samplerate,
                channels=channels,
                blocksize=AUDIO_CONFIG.playback_blocksize,
                device=self._device,
                callback=playback_callback,
                finished_callback=on_finished
            )
            self._paused = False
            self._stream.start()
            return True
        except Exception as e:
            logger.error(f"Failed to start playback of {self._src}: {e}", exc_info=True)
            self._paused = True
            self._stream = None
            return False

    def pause(self) -> None:
        self._close_stream()
        self._paused = True

    def _close_stream(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except Exception as e:
                logger.warning(f"Error stopping stream: {e}")
            self._stream = None

    def set_output_device(self, device: Optional[Any]) -> None:
        """Route output to another device, keeping playback state."""
        was_playing = not self._paused
        self.pause()
        self._device = device
        if was_playing:
            self.play()

    def release(self) -> None:
        """Stop playback and drop the decoded data and listeners."""
        self.pause()
        self._load_callbacks.clear()
        self._error_callbacks.clear()
        self._src = None
        self._data = None
        self._frame = 0
