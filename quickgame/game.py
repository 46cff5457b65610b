"""The `Game` facade: one object owning the window, the canvas, the input
state and the tick loop.

Examples
--------
>>> game = Game(640, 480, "Box")
>>> x = 0
>>> @game.set_update
... def update():
...     global x
...     if game.is_key_pressed("right"):
...         x += 2
...     game.clear("black")
...     game.fill_rect(x, 100, 32, 32, "orange")
...
>>> game.run()
"""

import logging
import threading

from PIL import Image

from quickgame import resources
from quickgame._core import Config
from quickgame._core import TickLoop
from quickgame._core import validate_rate
from quickgame._window import Window
from quickgame.canvas import Canvas
from quickgame.canvas import Stroke
from quickgame.input import InputSnapshot
from quickgame.input import InputState
from quickgame.input import MouseButton


class Game:
    def __init__(self, width, height, title="quickgame", **config):
        """Create the canvas and open the window.

        Parameters
        ----------
        width, height : int
            Size of the drawable area of the window.
        title : str
        **config : Any
            Remaining `quickgame.Config` fields, e.g. ``update_rate=30``.
        """

        self.config = Config(size=(width, height), title=title, **config)
        self.canvas = Canvas(width, height)
        self.canvas.clear("black")
        self.input = InputState()
        self.loop = TickLoop(
            self.input, repaint=self.repaint, rate=self.config.update_rate
        )
        self._frame = None
        self._frame_lock = threading.Lock()
        self._frame_ready = threading.Event()
        self._running = False
        self._closed = False
        self.window = Window(self.config)
        self.input.connect()

    @property
    def width(self):
        return self.canvas.width

    @property
    def height(self):
        return self.canvas.height

    @property
    def title(self):
        return self.config.title

    @title.setter
    def title(self, value):
        self.config.title = value
        self.window.title = value

    @property
    def update_rate(self):
        """Ticks per second, can be changed while running."""

        return self.loop.rate

    @update_rate.setter
    def update_rate(self, rate):
        validate_rate(rate)
        self.config.update_rate = rate
        self.loop.rate = rate

    def set_update(self, callback):
        """Use `callback` as the per tick update. It is called with no
        arguments from the tick thread. Returns the callback so this can be
        used as a decorator."""

        self.loop.update = callback
        return callback

    def set_icon(self, image):
        """
        Parameters
        ----------
        image : PIL.Image.Image | str | os.PathLike | bytes
            An image, or anything `quickgame.read_image` accepts.
        """

        if not isinstance(image, Image.Image):
            image = resources.read_image(image)
        self.window.set_icon(image)

    def repaint(self):
        """Publish the canvas as it is now to be shown on the next frame."""

        frame = self.canvas.frame()
        with self._frame_lock:
            self._frame = frame
            self._frame_ready.set()

    def run(self):
        """Run the game on the calling thread until the window closes or
        `stop` is called.

        Raises
        ------
        Exception:
            Whatever the update callback raised, after the window is closed.
        """

        if self._closed:
            raise RuntimeError("This game has already been closed.")
        logging.info(f"Running {self.title!r} at {self.update_rate} tps.")
        self._running = True
        self.loop.start()
        self.window.present(self.canvas.frame())
        try:
            while self.loop.alive and not self.window.is_closing:
                frame = None
                if self._frame_ready.wait(timeout=1 / self.loop.rate):
                    with self._frame_lock:
                        frame, self._frame = self._frame, None
                        self._frame_ready.clear()
                self.window.present(frame)
                self.window.swap_buffers()
        finally:
            self._running = False
            self.loop.stop()
            self.loop.join(timeout=1)
            self.close()

        if self.loop.error is not None:
            raise self.loop.error

    def stop(self):
        """Stop the game. Safe to call from the update callback."""

        self.loop.stop()
        if not self._running:
            self.close()

    def close(self):
        if self._closed:
            return
        self._closed = True
        self.input.disconnect()
        self.window.close()

    @property
    def snapshot(self) -> InputSnapshot:
        return self.input.snapshot

    def is_key_pressed(self, key):
        return self.input.snapshot.is_key_pressed(key)

    def is_key_just_pressed(self, key):
        return self.input.snapshot.is_key_just_pressed(key)

    @property
    def mouse_x(self):
        return self.input.snapshot.mouse_x

    @property
    def mouse_y(self):
        return self.input.snapshot.mouse_y

    @property
    def mouse_scroll(self):
        """Units scrolled between the previous tick and this one, positive
        when scrolling down."""

        return self.input.snapshot.mouse_scroll

    @property
    def left_mouse_pressed(self):
        return self.input.snapshot.is_mouse_pressed(MouseButton.LEFT)

    @property
    def middle_mouse_pressed(self):
        return self.input.snapshot.is_mouse_pressed(MouseButton.MIDDLE)

    @property
    def right_mouse_pressed(self):
        return self.input.snapshot.is_mouse_pressed(MouseButton.RIGHT)

    @property
    def left_mouse_clicked(self):
        return self.input.snapshot.is_mouse_clicked(MouseButton.LEFT)

    @property
    def middle_mouse_clicked(self):
        return self.input.snapshot.is_mouse_clicked(MouseButton.MIDDLE)

    @property
    def right_mouse_clicked(self):
        return self.input.snapshot.is_mouse_clicked(MouseButton.RIGHT)

    def clear(self, color):
        self.canvas.clear(color)

    def fill_rect(self, x, y, width, height, color):
        self.canvas.fill_rect(x, y, width, height, color)

    def draw_rect(self, x, y, width, height, color):
        self.canvas.draw_rect(x, y, width, height, color)

    def fill_circle(self, x, y, width, height, color):
        self.canvas.fill_circle(x, y, width, height, color)

    def draw_circle(self, x, y, width, height, color):
        self.canvas.draw_circle(x, y, width, height, color)

    def draw_line(self, x1, y1, x2, y2, color):
        self.canvas.draw_line(x1, y1, x2, y2, color)

    def draw_text(self, x, y, text, font=None, color="white"):
        self.canvas.draw_text(x, y, text, font, color)

    def draw_polygon(self, points, color):
        self.canvas.draw_polygon(points, color)

    def fill_polygon(self, points, color):
        self.canvas.fill_polygon(points, color)

    def draw_image(self, image, x, y, width=None, height=None, src=None):
        self.canvas.draw_image(image, x, y, width, height, src)

    def set_stroke(self, stroke):
        """
        Parameters
        ----------
        stroke : quickgame.Stroke | float
            A bare number sets just the width.
        """

        if not isinstance(stroke, Stroke):
            stroke = Stroke(stroke)
        self.canvas.set_stroke(stroke)

    def translate(self, x, y):
        self.canvas.translate(x, y)

    def scale(self, sx, sy):
        self.canvas.scale(sx, sy)

    def rotate(self, degrees, x=None, y=None):
        self.canvas.rotate(degrees, x, y)

    def shear(self, shx, shy):
        self.canvas.shear(shx, shy)

    def transform(self, matrix):
        self.canvas.transform(matrix)

    def set_transform(self, matrix):
        self.canvas.set_transform(matrix)

    def reset_transform(self):
        self.canvas.reset_transform()
