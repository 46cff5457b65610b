"""The events module lets the window, the tick loop and user code talk to each
other without explicit knowledge of each other through a callback system.

An event can be basically any object. It is just a container for some data,
making namedtuple/dataclass good choices.

Examples
--------
>>> def do_update(event):
...     print(f"dt={event.dt}")
...
>>> subscribe(Update, do_update)
>>> post(Update(0.01, 1))
dt=0.01
>>> unsubscribe(Update, do_update)
>>> post(Update(0.01, 2))
>>> # no callback
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import NamedTuple

_event_handlers = defaultdict(list)
_lock = threading.RLock()


class Update(NamedTuple):
    """Posted by the tick loop once the update callback has returned."""

    dt: float
    tick: int


def post(event):
    """Calls callbacks registered to the type of this event.

    Parameters
    ----------
    event : Any
        An event is just a data container.
    """

    with _lock:
        handlers = list(_event_handlers.get(type(event), ()))
    for handler_ in handlers:
        handler_(event)


def subscribe(event_type, *callbacks):
    """Subscribe callbacks to a given event type.

    Parameters
    ----------
    event_type : type
    *callbacks : Callable
    """

    with _lock:
        _event_handlers[event_type].extend(callbacks)


def unsubscribe(event_type, *callbacks) -> None:
    """Unsubscribe callbacks from a given event type. Safe to call with
    callbacks that were never subscribed.

    Parameters
    ----------
    event_type : type
    *callbacks : Callable
    """

    with _lock:
        for callback in callbacks:
            try:
                _event_handlers[event_type].remove(callback)
            except ValueError:
                pass


def clear_handlers(*event_types):
    """If event types are given this will clear all handlers from just those
    types, otherwise it will clear all event handlers.

    Parameters
    ----------
    *event_types : type
    """

    with _lock:
        if not event_types:
            _event_handlers.clear()
        else:
            for type_ in event_types:
                _event_handlers[type_].clear()
