"""Clock adapter over a Qt ``QMediaPlayer``."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtMultimedia import QMediaPlayer

from tm.common.logger import get_component_logger
from tm.core.clock import ClockBase, DEFAULT_FPS

log = get_component_logger("media_clock")


class ClockSignals(QObject):
    """Qt-side relay so widgets can connect to clock ticks with normal signal/slot wiring."""

    time_updated = Signal(float)
    duration_changed = Signal(float)


class QtMediaClock(ClockBase):
    """Wraps a QMediaPlayer (positions in milliseconds) as an engine clock.

    Every ``positionChanged`` from the player is forwarded both to the plain
    subscriber list (engine side) and to ``signals.time_updated`` (Qt side).
    """

    def __init__(self, player: QMediaPlayer, fps=DEFAULT_FPS):
        super().__init__(fps=fps)
        self.player = player
        self.signals = ClockSignals()
        player.positionChanged.connect(self._on_position_changed)
        player.durationChanged.connect(self._on_duration_changed)

    @classmethod
    def from_file(cls, path, parent: QObject | None = None, fps=DEFAULT_FPS):
        player = QMediaPlayer(parent)
        player.setSource(QUrl.fromLocalFile(str(Path(path).resolve())))
        log.info(f"Opened media source '{path}'")
        return cls(player, fps=fps)

    def current_time(self):
        return max(0, self.player.position()) / 1000.0

    def duration(self):
        return max(0, self.player.duration()) / 1000.0

    def is_playing(self):
        return self.player.playbackState() == QMediaPlayer.PlaybackState.PlayingState

    def playback_rate(self):
        return self.player.playbackRate()

    def _set_position(self, t):
        self.player.setPosition(int(round(t * 1000)))

    def _set_playing(self, playing):
        if playing:
            self.player.play()
        else:
            self.player.pause()

    def _set_rate(self, rate):
        self.player.setPlaybackRate(rate)

    def _on_position_changed(self, position_ms):
        t = max(0, position_ms) / 1000.0
        self._notify(t)
        self.signals.time_updated.emit(t)

    def _on_duration_changed(self, duration_ms):
        d = max(0, duration_ms) / 1000.0
        log.debug(f"Media duration is {d:.3f}s ({self.total_frames()} frames at {self.fps} fps)")
        self.signals.duration_changed.emit(d)
