"""Audio clip playback through pygame's mixer.

Usage:
    clip = play_audio("sounds/jump.wav")
    music = play_internal_audio("music/theme.ogg", loop_count=-1)
    music.volume = 0.5
    music.stop()

`loop_point` marks where a looping clip jumps back to the start, given in
sample frames. The clip plays ``[0, loop_point)`` once plus `loop_count` more
times and then plays the rest of the clip through to the end.
"""

import io
import logging

import numpy as np
import pygame

from quickgame import resources

LOOP_FOREVER = -1


def _ensure_mixer():
    if pygame.mixer.get_init() is None:
        pygame.mixer.init()
        logging.debug(f"Mixer initialized with {pygame.mixer.get_init()}.")


def _frame_count(sound):
    _, size, channels = pygame.mixer.get_init()
    # get_raw() is interleaved, one sample per channel per frame
    return len(sound.get_raw()) // (abs(size) // 8 * channels)


class Clip:
    """A playing (or finished) clip on a mixer channel."""

    def __init__(self, sound, channel, frames):
        self.sound = sound
        self.channel = channel
        self.frames = frames

    @property
    def playing(self):
        return self.channel is not None and self.channel.get_busy()

    @property
    def volume(self):
        if self.channel is None:
            return self.sound.get_volume()
        return self.channel.get_volume()

    @volume.setter
    def volume(self, value):
        if not 0 <= value <= 1:
            raise ValueError(f"Volume must be within [0, 1], got {value}.")
        if self.channel is not None:
            self.channel.set_volume(value)
        else:
            self.sound.set_volume(value)

    def stop(self):
        if self.channel is not None:
            self.channel.stop()

    def __repr__(self):
        return f"<Clip({self.frames} frames, playing={self.playing})>"


def load_sound(source):
    """Decode a clip without playing it.

    Parameters
    ----------
    source : str | os.PathLike | bytes | typing.BinaryIO

    Returns
    -------
    pygame.mixer.Sound
    """

    _ensure_mixer()
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(source)
    try:
        return pygame.mixer.Sound(source)
    except (pygame.error, OSError) as exc:
        raise resources.ResourceError(
            f"Failed reading audio from {source!r}."
        ) from exc


def play_audio(source, loop_count=0, loop_point=-1):
    """Reads audio data and starts playing it immediately.

    Parameters
    ----------
    source : str | os.PathLike | bytes | typing.BinaryIO
        A file path, raw encoded audio data or a binary stream.
    loop_count : int
        How many extra times the clip repeats, -1 to loop forever.
    loop_point : int
        Sample frame where looping jumps back to the start, -1 for the end of
        the clip.

    Returns
    -------
    Clip
    """

    if loop_count < LOOP_FOREVER:
        raise ValueError(f"loop_count must be >= -1, got {loop_count}.")
    sound = load_sound(source)
    frames = _frame_count(sound)
    if loop_point != -1 and not 0 < loop_point <= frames:
        raise ValueError(
            f"loop_point must be -1 or within [1, {frames}], got {loop_point}."
        )

    if loop_point in (-1, frames):
        channel = sound.play(loops=loop_count)
    else:
        samples = pygame.sndarray.array(sound)
        head = pygame.sndarray.make_sound(
            np.ascontiguousarray(samples[:loop_point])
        )
        channel = head.play(loops=loop_count)
        if channel is not None and loop_count != LOOP_FOREVER:
            tail = pygame.sndarray.make_sound(
                np.ascontiguousarray(samples[loop_point:])
            )
            channel.queue(tail)

    if channel is None:
        logging.warning("No free mixer channel, clip will not be heard.")
    return Clip(sound, channel, frames)


def play_internal_audio(path, loop_count=0, loop_point=-1):
    return play_audio(
        resources.read_internal_file_bytes(path), loop_count, loop_point
    )
