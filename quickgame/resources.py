"""Reading bytes, text, images and fonts from files, streams and resource
roots.

"Internal" resources are addressed by a relative, forward-slash separated path
such as ``"sprites/player.png"`` and looked up in each resource root in turn.
A root is either a directory or a zip archive, so a game can ship its assets
packed into a single file. The current working directory is the default root.
"""

import io
import logging
import os
import pathlib
import zipfile
from pathlib import PurePosixPath
from typing import NamedTuple

from PIL import Image
from PIL import ImageFont

_READ_CHUNK = 1024
_RESOURCE_ROOTS = (pathlib.Path.cwd(),)


class ResourceError(RuntimeError):
    """Raised when a resource exists but can't be read or decoded."""


class ZipEntry(NamedTuple):
    """A file inside a zip archive resource root. The archive is only open
    while reading."""

    archive: pathlib.Path
    name: str

    def read_bytes(self):
        with zipfile.ZipFile(self.archive) as zf:
            return zf.read(self.name)


def set_resource_roots(*paths):
    """Sets the roots that will be searched to find internal resources.

    Parameters
    ----------
    *paths : pathlib.Path | str
        Directories or zip archives.
    """

    global _RESOURCE_ROOTS
    _RESOURCE_ROOTS = tuple(pathlib.Path(p) for p in paths)


def add_resource_roots(*paths):
    """Similar to `set_resource_roots` but keeps the roots currently in use.
    New roots are searched last.

    Parameters
    ----------
    *paths : pathlib.Path | str
    """

    global _RESOURCE_ROOTS
    _RESOURCE_ROOTS = (*_RESOURCE_ROOTS, *(pathlib.Path(p) for p in paths))


def get_resource_roots():
    return _RESOURCE_ROOTS


def find_internal(path):
    """Locate an internal resource.

    Parameters
    ----------
    path : str
        Relative path with exactly one forward slash between folders.

    Returns
    -------
    pathlib.Path | ZipEntry:
        Either way the result supports `read_bytes()`.

    Raises
    ------
    ValueError:
        When the path isn't a clean relative path.
    KeyError:
        When no resource root contains the path.
    """

    name = _validate_internal_path(path)
    for root in _RESOURCE_ROOTS:
        if root.is_dir():
            candidate = root.joinpath(*name.split("/"))
            if candidate.is_file():
                return candidate
        elif zipfile.is_zipfile(root):
            with zipfile.ZipFile(root) as zf:
                found = name in zf.namelist()
            if found:
                return ZipEntry(root, name)
    raise KeyError(
        f"Resource with {path=} not found in "
        f"{[str(r) for r in _RESOURCE_ROOTS]}."
    )


def read_all_bytes(stream):
    """Reads every remaining byte from a binary stream.

    Parameters
    ----------
    stream : typing.BinaryIO

    Returns
    -------
    bytes
    """

    try:
        return b"".join(iter(lambda: stream.read(_READ_CHUNK), b""))
    except OSError as exc:
        raise ResourceError(f"Failed reading from {stream!r}.") from exc


def read_file_bytes(path):
    try:
        with open(path, "rb") as f:
            return read_all_bytes(f)
    except OSError as exc:
        raise ResourceError(f"Failed reading file {path}.") from exc


def read_file_string(path, encoding="utf-8"):
    return _decode(read_file_bytes(path), encoding, path)


def read_internal_file_bytes(path):
    resource = find_internal(path)
    try:
        return resource.read_bytes()
    except (OSError, zipfile.BadZipFile) as exc:
        raise ResourceError(f"Failed reading resource {path!r}.") from exc


def read_internal_file_string(path, encoding="utf-8"):
    return _decode(read_internal_file_bytes(path), encoding, path)


def read_image(source):
    """Reads image data and returns the decoded image.

    Parameters
    ----------
    source : str | os.PathLike | bytes | typing.BinaryIO
        A file path, raw encoded image data or a binary stream.

    Returns
    -------
    PIL.Image.Image:
        Fully loaded, in RGBA mode.
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(source)
    try:
        with Image.open(source) as im:
            im.load()
            image = im.convert("RGBA")
    except OSError as exc:
        raise ResourceError(f"Failed reading image from {source!r}.") from exc
    logging.debug(f"Loaded image {image.size} from {source!r}.")
    return image


def read_internal_image(path):
    return read_image(read_internal_file_bytes(path))


def load_font(source, size=12):
    """Loads a TrueType/OpenType font for `Canvas.draw_text`.

    Parameters
    ----------
    source : str | os.PathLike | bytes | typing.BinaryIO
        A font file, a font name the system can resolve ("DejaVuSans.ttf"),
        raw font data or a binary stream.
    size : int
        Size in pixels.
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(source)
    elif isinstance(source, os.PathLike):
        source = os.fspath(source)
    try:
        return ImageFont.truetype(source, size)
    except OSError as exc:
        raise ResourceError(f"Failed loading font {source!r}.") from exc


def load_internal_font(path, size=12):
    return load_font(read_internal_file_bytes(path), size)


def _validate_internal_path(path):
    if "\\" in path or any(
        part in ("", ".", "..") for part in path.split("/")
    ):
        raise ValueError(
            f"Internal paths must be relative with exactly one forward slash "
            f"between folders, got {path!r}."
        )
    return str(PurePosixPath(path))


def _decode(data, encoding, origin):
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise ResourceError(f"{origin} is not valid {encoding}.") from exc
