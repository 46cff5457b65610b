"""Keyboard and mouse state.

Window callbacks arrive on the event-dispatch thread and write into the live
buffers of an `InputState`. Once per tick the loop calls `InputState.advance`,
which publishes an immutable `InputSnapshot`. Everything a game reads during
its update comes from that snapshot, so the state can't shift halfway through
a tick.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Union

from quickgame import events


class _StringMappingEnum(Enum):
    @classmethod
    def map_string(cls, string):
        for member in cls:
            if string.lower() in member.value:
                return member

    def __repr__(self):
        return f"<{self.__class__.__name__}.{self.name}>"

    def __eq__(self, other):
        if isinstance(other, str):
            return other.lower() in self.value
        elif isinstance(other, type(self)):
            return other.name == self.name
        else:
            return False

    def __hash__(self):
        return hash(self.name)


class Keyboard(_StringMappingEnum):
    """Defines which string values map to which keyboard inputs."""

    ESCAPE = ("escape", "esc")
    SPACE = ("space", " ")
    ENTER = ("enter", "return", "\n")
    PAGE_UP = ("page_up",)
    PAGE_DOWN = ("page_down",)
    LEFT = ("left",)
    RIGHT = ("right",)
    UP = ("up",)
    DOWN = ("down",)

    LEFT_SHIFT = ("shift", "left_shift", "lshift")
    RIGHT_SHIFT = ("right_shift", "rshift")
    LEFT_CTRL = ("ctrl", "control", "left_ctrl", "lctrl")
    RIGHT_CTRL = ("right_ctrl", "rctrl")
    LEFT_ALT = ("alt", "left_alt", "lalt")
    RIGHT_ALT = ("right_alt", "ralt")

    TAB = ("\t", "tab")
    COMMA = (",", "comma")
    MINUS = ("-", "minus")
    PERIOD = (".", "period")
    SLASH = ("/", "slash")
    SEMICOLON = (";", "semicolon")
    EQUAL = ("=", "equal")
    LEFT_BRACKET = ("[", "left_bracket")
    RIGHT_BRACKET = ("]", "right_bracket")
    BACKSLASH = ("\\", "backslash")
    BACKSPACE = ("back", "backspace")
    INSERT = ("ins", "insert")
    DELETE = ("del", "delete")
    HOME = ("home",)
    END = ("end",)
    CAPS_LOCK = ("caps", "caps_lock")

    F1 = ("f1",)
    F2 = ("f2",)
    F3 = ("f3",)
    F4 = ("f4",)
    F5 = ("f5",)
    F6 = ("f6",)
    F7 = ("f7",)
    F8 = ("f8",)
    F9 = ("f9",)
    F10 = ("f10",)
    F11 = ("f11",)
    F12 = ("f12",)

    NUMBER_0 = ("0",)
    NUMBER_1 = ("1",)
    NUMBER_2 = ("2",)
    NUMBER_3 = ("3",)
    NUMBER_4 = ("4",)
    NUMBER_5 = ("5",)
    NUMBER_6 = ("6",)
    NUMBER_7 = ("7",)
    NUMBER_8 = ("8",)
    NUMBER_9 = ("9",)

    NUMPAD_0 = ("n_0", "numpad_0")
    NUMPAD_1 = ("n_1", "numpad_1")
    NUMPAD_2 = ("n_2", "numpad_2")
    NUMPAD_3 = ("n_3", "numpad_3")
    NUMPAD_4 = ("n_4", "numpad_4")
    NUMPAD_5 = ("n_5", "numpad_5")
    NUMPAD_6 = ("n_6", "numpad_6")
    NUMPAD_7 = ("n_7", "numpad_7")
    NUMPAD_8 = ("n_8", "numpad_8")
    NUMPAD_9 = ("n_9", "numpad_9")

    A = ("a", "key_a")
    B = ("b", "key_b")
    C = ("c", "key_c")
    D = ("d", "key_d")
    E = ("e", "key_e")
    F = ("f", "key_f")
    G = ("g", "key_g")
    H = ("h", "key_h")
    I = ("i", "key_i")
    J = ("j", "key_j")
    K = ("k", "key_k")
    L = ("l", "key_l")
    M = ("m", "key_m")
    N = ("n", "key_n")
    O = ("o", "key_o")
    P = ("p", "key_p")
    Q = ("q", "key_q")
    R = ("r", "key_r")
    S = ("s", "key_s")
    T = ("t", "key_t")
    U = ("u", "key_u")
    V = ("v", "key_v")
    W = ("w", "key_w")
    X = ("x", "key_x")
    Y = ("y", "key_y")
    Z = ("z", "key_z")


class MouseButton(_StringMappingEnum):
    LEFT = ("mouse1", "mouse_1", "mouse_left", "left")
    RIGHT = ("mouse2", "mouse_2", "mouse_right", "right")
    MIDDLE = ("mouse3", "mouse_3", "mouse_middle", "middle")


KeyLike = Union[Keyboard, str]
ButtonLike = Union[MouseButton, str]


@dataclass
class _InputEvent:
    pass


@dataclass
class KeyDown(_InputEvent):
    key: Keyboard


@dataclass
class KeyUp(_InputEvent):
    key: Keyboard


@dataclass
class MouseDown(_InputEvent):
    x: int
    y: int
    button: MouseButton


@dataclass
class MouseUp(_InputEvent):
    x: int
    y: int
    button: MouseButton


@dataclass
class MouseMotion(_InputEvent):
    x: int
    y: int
    dx: int
    dy: int


@dataclass
class MouseDrag(_InputEvent):
    x: int
    y: int
    dx: int
    dy: int


@dataclass
class MouseScroll(_InputEvent):
    units: int


@dataclass(frozen=True)
class InputSnapshot:
    """Frame-stable keyboard and mouse state for one tick."""

    tick: int = 0
    pressed_keys: FrozenSet[Keyboard] = field(default_factory=frozenset)
    just_pressed_keys: FrozenSet[Keyboard] = field(default_factory=frozenset)
    mouse_x: int = 0
    mouse_y: int = 0
    pressed_buttons: FrozenSet[MouseButton] = field(default_factory=frozenset)
    clicked_buttons: FrozenSet[MouseButton] = field(default_factory=frozenset)
    mouse_scroll: int = 0

    def is_key_pressed(self, key: KeyLike) -> bool:
        return as_key(key) in self.pressed_keys

    def is_key_just_pressed(self, key: KeyLike) -> bool:
        return as_key(key) in self.just_pressed_keys

    def is_mouse_pressed(self, button: ButtonLike) -> bool:
        return as_button(button) in self.pressed_buttons

    def is_mouse_clicked(self, button: ButtonLike) -> bool:
        return as_button(button) in self.clicked_buttons


def as_key(key: KeyLike) -> Keyboard:
    """Resolve a `Keyboard` member from either a member or a mapped string.

    Raises
    ------
    ValueError:
        When a string doesn't map to any key.
    """

    if isinstance(key, Keyboard):
        return key
    if not isinstance(key, str):
        raise TypeError(f"Expected a Keyboard member or str, got {key!r}.")
    mapped = Keyboard.map_string(key)
    if mapped is None:
        raise ValueError(f"Unknown key {key!r}.")
    return mapped


def as_button(button: ButtonLike) -> MouseButton:
    if isinstance(button, MouseButton):
        return button
    if not isinstance(button, str):
        raise TypeError(
            f"Expected a MouseButton member or str, got {button!r}."
        )
    mapped = MouseButton.map_string(button)
    if mapped is None:
        raise ValueError(f"Unknown mouse button {button!r}.")
    return mapped


class InputState:
    """Live input buffers plus the snapshot published for the current tick.

    The `key_*` and `mouse_*` writers are meant for the event-dispatch thread,
    `advance` for the tick thread. Both sides go through the same lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._keys = set()
        self._buttons = set()
        self._mouse_x = 0
        self._mouse_y = 0
        self._scroll = 0
        self._snapshot = InputSnapshot()
        self._handlers = {
            KeyDown: lambda e: self.key_down(e.key),
            KeyUp: lambda e: self.key_up(e.key),
            MouseDown: self._on_mouse_down,
            MouseUp: self._on_mouse_up,
            MouseMotion: lambda e: self.mouse_moved(e.x, e.y),
            MouseDrag: lambda e: self.mouse_moved(e.x, e.y),
            MouseScroll: lambda e: self.mouse_scrolled(e.units),
        }

    @property
    def snapshot(self) -> InputSnapshot:
        return self._snapshot

    def connect(self):
        """Subscribe to input events posted by the window."""

        for event_type in self._events:
            events.subscribe(event_type, self.handle)

    def disconnect(self):
        for event_type in self._events:
            events.unsubscribe(event_type, self.handle)

    @property
    def _events(self):
        return _InputEvent.__subclasses__()

    def handle(self, event):
        """Route an input event into the live buffers."""

        self._handlers[type(event)](event)

    def key_down(self, key: KeyLike):
        key = as_key(key)
        with self._lock:
            self._keys.add(key)

    def key_up(self, key: KeyLike):
        key = as_key(key)
        with self._lock:
            self._keys.discard(key)

    def mouse_down(self, button: ButtonLike):
        button = as_button(button)
        with self._lock:
            self._buttons.add(button)

    def mouse_up(self, button: ButtonLike):
        button = as_button(button)
        with self._lock:
            self._buttons.discard(button)

    def mouse_moved(self, x: int, y: int):
        with self._lock:
            self._mouse_x = x
            self._mouse_y = y

    def mouse_scrolled(self, units: int):
        with self._lock:
            self._scroll += units

    def advance(self) -> InputSnapshot:
        """Publish the live buffers as the snapshot for the next tick.

        Returns
        -------
        InputSnapshot:
            The freshly published snapshot.
        """

        previous = self._snapshot
        with self._lock:
            keys = frozenset(self._keys)
            buttons = frozenset(self._buttons)
            x, y = self._mouse_x, self._mouse_y
            scroll = self._scroll
            self._scroll = 0

        self._snapshot = InputSnapshot(
            tick=previous.tick + 1,
            pressed_keys=keys,
            just_pressed_keys=keys - previous.pressed_keys,
            mouse_x=x,
            mouse_y=y,
            pressed_buttons=buttons,
            clicked_buttons=buttons - previous.pressed_buttons,
            mouse_scroll=scroll,
        )
        return self._snapshot

    def _on_mouse_down(self, event):
        self.mouse_moved(event.x, event.y)
        self.mouse_down(event.button)

    def _on_mouse_up(self, event):
        self.mouse_moved(event.x, event.y)
        self.mouse_up(event.button)
