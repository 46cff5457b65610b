"""Config variables and the fixed-rate tick loop that drives a game."""

import atexit
import logging
import threading
from dataclasses import dataclass

from quickgame import events
from quickgame import time

DEFAULT_WINDOW_CLASS = "moderngl_window.context.pygame2.Window"


def validate_rate(rate):
    if rate <= 0:
        raise ValueError(f"Update rate must be positive, got {rate=}.")
    return rate


@dataclass
class Config:
    """Window and loop config variables.

    Everything except `update_rate` is fixed once the window exists.
    """

    size: tuple = (800, 600)
    title: str = "quickgame"
    update_rate: float = 60
    window_class: str = DEFAULT_WINDOW_CLASS
    centered: bool = True
    vsync: bool = False

    def __post_init__(self):
        width, height = self.size
        if width <= 0 or height <= 0:
            raise ValueError(f"Window size must be positive, got {self.size}.")
        self.size = (int(width), int(height))
        validate_rate(self.update_rate)

    def window_settings(self):
        """Settings in the form moderngl_window expects."""

        return {
            "class": self.window_class,
            "size": self.size,
            "title": self.title,
            "resizable": False,
            "vsync": self.vsync,
            "aspect_ratio": None,
            "cursor": True,
        }


def _dummy_func():
    pass


class TickLoop:
    """Runs the update callback at a fixed rate on a background thread.

    Each tick publishes a new input snapshot, calls the update callback,
    posts `events.Update` and finally requests a repaint.
    """

    def __init__(self, input_state, update=None, repaint=None, rate=60):
        """
        Parameters
        ----------
        input_state : quickgame.input.InputState
        update : Callable[[], None], optional
            Called once per tick with no arguments.
        repaint : Callable[[], None], optional
            Called after the update callback has returned.
        rate : int | float
            Ticks per second.
        """

        self.input_state = input_state
        self.update = update or _dummy_func
        self.repaint = repaint or _dummy_func
        self.rate = validate_rate(rate)
        self.error = None
        self._running = False
        self._thread = None

    @property
    def alive(self):
        return self._running

    def start(self):
        if self._thread is not None:
            raise RuntimeError("TickLoop can only be started once.")
        self._running = True
        self._thread = threading.Thread(
            target=self._run, name="quickgame-tick", daemon=True
        )
        atexit.register(self.stop)
        self._thread.start()

    def stop(self):
        """Ask the loop to finish. The current tick, if any, completes."""

        self._running = False
        atexit.unregister(self.stop)

    def join(self, timeout=None):
        if self._thread is None or self._thread is threading.current_thread():
            return
        self._thread.join(timeout)

    def step(self, dt=0.0):
        """Execute a single tick without waiting on the timer."""

        snapshot = self.input_state.advance()
        self.update()
        events.post(events.Update(dt, snapshot.tick))
        self.repaint()

    def _run(self):
        logging.debug(f"Tick loop started at {self.rate} ticks per second.")
        timer = time.Timer(self.rate)
        try:
            while self._running:
                dt = timer.tick(self.rate)
                if not self._running:
                    break
                self.step(dt)
        except Exception as exc:
            logging.exception("Update callback raised, stopping tick loop.")
            self.error = exc
        finally:
            self._running = False
            logging.debug("Tick loop stopped.")
