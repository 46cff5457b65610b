import logging
import os

import moderngl
import moderngl_window as mglw
import pygame
from moderngl_window.conf import settings
from PIL import Image

from quickgame import events
from quickgame import input

# keys moderngl_window's pygame2 backend doesn't name
_PYGAME2_KEYS_MODULE = "moderngl_window.context.pygame2"
_PYGAME2_EXTRA_KEYS = {
    "RIGHT_CTRL": pygame.K_RCTRL,
    "LEFT_ALT": pygame.K_LALT,
    "RIGHT_ALT": pygame.K_RALT,
}


class Window:
    """A fixed size moderngl_window window that shows finished canvas frames
    and posts input events.

    Must be created and used from the main thread.
    """

    def __init__(self, config):
        if config.centered:
            os.environ.setdefault("SDL_VIDEO_CENTERED", "1")
        for k, v in config.window_settings().items():
            settings.WINDOW[k] = v

        self._window = mglw.create_window_from_settings()
        # escape is a regular key, closing is up to the game
        self._window.exit_key = None
        self.ctx: moderngl.Context = self._window.ctx
        self.size = config.size
        logging.debug(f"Created {config.window_class} with size {self.size}.")

        self._texture = self.ctx.texture(self.size, 4)
        self._texture.filter = (moderngl.NEAREST, moderngl.NEAREST)
        self._framebuffer = self.ctx.framebuffer(
            color_attachments=[self._texture]
        )

        # Map moderngl_window constants to our enums. This needs to be
        # deferred until now because the window provider decides the values.
        self._button_lookup = {
            self._window.mouse.left: input.MouseButton.LEFT,
            self._window.mouse.right: input.MouseButton.RIGHT,
            self._window.mouse.middle: input.MouseButton.MIDDLE,
        }
        keys = self._window.keys
        codes = {
            name: getattr(keys, name)
            for name in input.Keyboard.__members__
            if hasattr(keys, name)
        }
        if keys.__module__.startswith(_PYGAME2_KEYS_MODULE):
            for name, code in _PYGAME2_EXTRA_KEYS.items():
                codes.setdefault(name, code)
        self._key_lookup = {
            code: input.Keyboard[name] for name, code in codes.items()
        }
        self._hook_window_events()

    @property
    def is_closing(self):
        return self._window.is_closing

    @property
    def title(self):
        return self._window.title

    @title.setter
    def title(self, value):
        self._window.title = value

    def set_icon(self, image: Image.Image):
        if not pygame.display.get_init():
            logging.warning("Window icons are only supported by pygame.")
            return
        rgba = image.convert("RGBA")
        surface = pygame.image.frombuffer(rgba.tobytes(), rgba.size, "RGBA")
        pygame.display.set_icon(surface)

    def present(self, frame=None):
        """Copy the latest frame to the screen. A new frame is uploaded
        first when given, otherwise the previous one is shown again.

        Parameters
        ----------
        frame : PIL.Image.Image, optional
        """

        if frame is not None:
            # OpenGL rows start at the bottom
            data = frame.transpose(Image.Transpose.FLIP_TOP_BOTTOM).tobytes()
            self._texture.write(data)
        self.ctx.copy_framebuffer(self._window.fbo, self._framebuffer)

    def swap_buffers(self):
        """Show the back buffer. This also polls the toolkit for events."""

        self._window.swap_buffers()

    def close(self):
        self._framebuffer.release()
        self._texture.release()
        self._window.close()
        self._window.destroy()
        logging.debug("Window closed.")

    def _hook_window_events(self):
        def _broadcast_key_event(key, action, modifiers):
            key_enum = self._key_lookup.get(key)
            if key_enum is None:
                logging.debug(f"Key mapping not found for {key!r}.")
                return
            if action == self._window.keys.ACTION_PRESS:
                events.post(input.KeyDown(key_enum))
            else:
                events.post(input.KeyUp(key_enum))

        def _broadcast_mouse_press_event(x, y, button):
            button_enum = self._button_lookup.get(button)
            if button_enum is not None:
                events.post(input.MouseDown(x, y, button_enum))

        def _broadcast_mouse_release_event(x, y, button):
            button_enum = self._button_lookup.get(button)
            if button_enum is not None:
                events.post(input.MouseUp(x, y, button_enum))

        def _broadcast_mouse_motion_event(x, y, dx, dy):
            events.post(input.MouseMotion(x, y, dx, dy))

        def _broadcast_mouse_drag_event(x, y, dx, dy):
            events.post(input.MouseDrag(x, y, dx, dy))

        def _broadcast_mouse_wheel_event(dx, dy):
            # wheel-up is positive here, scroll units count downwards
            events.post(input.MouseScroll(-round(dy)))

        self._window.key_event_func = _broadcast_key_event
        self._window.mouse_press_event_func = _broadcast_mouse_press_event
        self._window.mouse_release_event_func = _broadcast_mouse_release_event
        self._window.mouse_position_event_func = _broadcast_mouse_motion_event
        self._window.mouse_drag_event_func = _broadcast_mouse_drag_event
        self._window.mouse_scroll_event_func = _broadcast_mouse_wheel_event
