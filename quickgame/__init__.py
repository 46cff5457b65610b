from quickgame.game import Game

from quickgame._core import Config
from quickgame._core import TickLoop

from quickgame.canvas import Canvas
from quickgame.canvas import Stroke

from quickgame.events import post as post_event
from quickgame.events import subscribe
from quickgame.events import unsubscribe
from quickgame.events import Update

from quickgame.input import InputSnapshot
from quickgame.input import InputState
from quickgame.input import Keyboard
from quickgame.input import MouseButton
from quickgame.input import KeyDown
from quickgame.input import KeyUp
from quickgame.input import MouseDown
from quickgame.input import MouseUp
from quickgame.input import MouseMotion
from quickgame.input import MouseDrag
from quickgame.input import MouseScroll

from quickgame.resources import ResourceError
from quickgame.resources import set_resource_roots
from quickgame.resources import add_resource_roots
from quickgame.resources import read_all_bytes
from quickgame.resources import read_file_bytes
from quickgame.resources import read_file_string
from quickgame.resources import read_internal_file_bytes
from quickgame.resources import read_internal_file_string
from quickgame.resources import read_image
from quickgame.resources import read_internal_image
from quickgame.resources import load_font
from quickgame.resources import load_internal_font

from quickgame.audio import Clip
from quickgame.audio import LOOP_FOREVER
from quickgame.audio import play_audio
from quickgame.audio import play_internal_audio
