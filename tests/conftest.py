import io
import os
import pathlib
import time
import wave
import zipfile

# must be set before pygame's mixer is initialized
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import pygame
import pytest
from PIL import Image

from quickgame import events
from quickgame import resources

MIXER_FREQUENCY = 22050


class RecordedCallback:
    def __init__(self):
        self.called = 0
        self.args = []
        self.kwargs = []

    def __call__(self, *args, **kwargs):
        self.args.append(args)
        self.kwargs.append(kwargs)
        self.called += 1

    @property
    def event(self):
        """Returns event from most recent call."""
        return self.args[-1][0]

    @property
    def events(self):
        """Returns all invoking events"""
        return [a[0] for a in self.args]

    def register(self, event_type):
        events.subscribe(event_type, self)

    def await_called(self, num_times_called, timeout=5):
        ts = time.time()
        while time.time() < ts + timeout:
            if self.called >= num_times_called:
                return
            time.sleep(0.001)
        raise TimeoutError(
            f"Target times called = {num_times_called}. "
            f"Current times called = {self.called}"
        )


@pytest.fixture
def recorded_callback() -> RecordedCallback:
    return RecordedCallback()


@pytest.fixture
def callback_maker():
    return RecordedCallback


@pytest.fixture(autouse=True, scope="function")
def cleanup_event_handlers():
    events.clear_handlers()
    yield
    events.clear_handlers()


@pytest.fixture(autouse=True)
def reset_resource_roots():
    roots = resources.get_resource_roots()
    yield
    resources.set_resource_roots(*roots)


@pytest.fixture
def tmpdir_maker(tmp_path):
    """Creates a directory tree from {relative path: file contents}."""

    counter = iter(range(1_000_000))

    def inner(files):
        fs_root = tmp_path / str(next(counter))
        for name, content in files.items():
            path = fs_root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode()
            path.write_bytes(content)
        return fs_root

    return inner


@pytest.fixture
def zip_maker(tmp_path):
    """Creates a zip archive from {archive name: file contents}."""

    def inner(files, name="resources.zip"):
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            for arcname, content in files.items():
                zf.writestr(arcname, content)
        return path

    return inner


def make_png(size, color):
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png((3, 2), (255, 0, 0, 255))


def make_wav(frames, frequency=MIXER_FREQUENCY):
    """16 bit mono sine wave in WAV format."""

    t = np.arange(frames) / frequency
    samples = (np.sin(2 * np.pi * 440 * t) * 8000).astype("<i2")
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(frequency)
        w.writeframes(samples.tobytes())
    return buffer.getvalue()


@pytest.fixture
def wav_bytes():
    return make_wav(2000)


@pytest.fixture
def mixer():
    try:
        pygame.mixer.init(frequency=MIXER_FREQUENCY, size=-16, channels=1)
    except pygame.error as exc:
        pytest.skip(f"No audio device available: {exc}")
    yield pygame.mixer
    pygame.mixer.quit()


@pytest.fixture
def wav_maker():
    return make_wav


@pytest.fixture
def png_maker():
    return make_png


@pytest.fixture
def font_path():
    """A TrueType font that ships with pygame."""

    return pathlib.Path(pygame.__file__).parent / pygame.font.get_default_font()
