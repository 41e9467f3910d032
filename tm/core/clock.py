"""Clock adapters: the playback clock the engine reads time from.

The engine never decodes media. It only needs the current time, the media duration,
and a handful of transport commands. ``ClockBase`` implements everything derivable
from those primitives (frame index, clamped seeks, frame stepping, the reverse flag,
zoom, change notifications); concrete adapters supply the primitives.
"""

import math
from dataclasses import dataclass
from tm.common.logger import get_component_logger
from tm.util import clamp

log = get_component_logger("clock")

DEFAULT_FPS = 30


@dataclass(frozen=True)
class ClockState:
    current_time: float
    duration: float
    is_playing: bool
    playback_rate: float
    zoom: float
    is_reverse: bool
    current_frame: int
    total_frames: int


class ClockBase:
    """Shared clock behaviour on top of a few primitives.

    Subclasses implement ``current_time``, ``duration``, ``is_playing``,
    ``playback_rate``, ``_set_position``, ``_set_playing`` and ``_set_rate``, and call
    ``_notify`` on every underlying tick.
    """

    def __init__(self, fps=DEFAULT_FPS):
        self.fps = fps
        self.zoom = 1.0
        self.is_reverse = False
        self._listeners = []

    #region === Primitives ===

    def current_time(self) -> float:
        raise NotImplementedError

    def duration(self) -> float:
        raise NotImplementedError

    def is_playing(self) -> bool:
        raise NotImplementedError

    def playback_rate(self) -> float:
        raise NotImplementedError

    def _set_position(self, t):
        raise NotImplementedError

    def _set_playing(self, playing):
        raise NotImplementedError

    def _set_rate(self, rate):
        raise NotImplementedError

    #endregion === Primitives ===

    #region === Notifications ===

    def subscribe(self, callback):
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, t):
        for callback in list(self._listeners):
            callback(t)

    #endregion === Notifications ===

    def frame_index(self) -> int:
        return math.floor(self.current_time() * self.fps)

    def total_frames(self) -> int:
        return math.floor(self.duration() * self.fps)

    def seek(self, t):
        target = clamp(float(t), 0.0, self.duration())
        self._set_position(target)
        return target

    def step_frame(self, direction=1):
        """Move one frame forward (``+1``) or back (``-1``), clamped to the media."""
        step = 1 if direction >= 0 else -1
        return self.seek(self.current_time() + step / self.fps)

    def toggle_play(self):
        playing = not self.is_playing()
        self._set_playing(playing)
        log.debug(f"Playback {'started' if playing else 'paused'} at {self.current_time():.3f}s")
        return playing

    def play(self):
        if not self.is_playing():
            self.toggle_play()

    def pause(self):
        if self.is_playing():
            self.toggle_play()

    def set_rate(self, rate):
        rate = float(rate)
        if rate <= 0:
            raise ValueError(f"Playback rate must be positive, got {rate}")
        self._set_rate(rate)
        log.debug(f"Playback rate set to {rate}x")

    def set_zoom(self, zoom):
        self.zoom = max(0.1, float(zoom))

    # Presentation flag only. The media keeps advancing forward; whether reverse playback is real is up to the host.
    def toggle_reverse(self):
        self.is_reverse = not self.is_reverse
        return self.is_reverse

    def snapshot(self) -> ClockState:
        return ClockState(
            current_time=self.current_time(),
            duration=self.duration(),
            is_playing=self.is_playing(),
            playback_rate=self.playback_rate(),
            zoom=self.zoom,
            is_reverse=self.is_reverse,
            current_frame=self.frame_index(),
            total_frames=self.total_frames(),
        )


class ManualClock(ClockBase):
    """In-memory clock advanced explicitly by the host (or by tests).

    ``advance(dt)`` moves the clock by ``dt * rate`` seconds of media time while
    playing, the way a real player would between two ticks.
    """

    def __init__(self, duration=0.0, current_time=0.0, fps=DEFAULT_FPS):
        super().__init__(fps=fps)
        self._duration = max(0.0, float(duration))
        self._time = clamp(float(current_time), 0.0, self._duration)
        self._playing = False
        self._rate = 1.0

    def current_time(self):
        return self._time

    def duration(self):
        return self._duration

    def is_playing(self):
        return self._playing

    def playback_rate(self):
        return self._rate

    def set_duration(self, duration):
        self._duration = max(0.0, float(duration))
        self._time = min(self._time, self._duration)

    def _set_position(self, t):
        self._time = t
        self._notify(t)

    def _set_playing(self, playing):
        self._playing = playing

    def _set_rate(self, rate):
        self._rate = rate

    def advance(self, dt):
        if self._playing:
            self._time = clamp(self._time + dt * self._rate, 0.0, self._duration)
            if self._time >= self._duration:
                self._playing = False
        self._notify(self._time)
        return self._time

    def tick(self):
        self._notify(self._time)
