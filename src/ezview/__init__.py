from typing import Sequence

from .blocks import UnresolvableBlockError, resolve_insert, transform_point
from .bounds import drawing_bounds, entity_bounds, screen_bounds
from .convert import ConvertResult, to_dxf
from .document import Block, Drawing, file_id, from_ezdxf, read
from .edit import copy_entities, move_entities, translate
from .entity import Entity
from .geometry import Box
from .hittest import pick
from .render import Drawable, build_drawables, plot
from .selection import SelectionMode, SelectionSet, entities_in_rect, select_in_rect
from .session import Session, load_view_state, save_view_state
from .transform import ViewState

__all__ = [
    "read",
    "from_ezdxf",
    "file_id",
    "Block",
    "Drawing",
    "Entity",
    "Box",
    "ViewState",
    "UnresolvableBlockError",
    "transform_point",
    "resolve_insert",
    "entity_bounds",
    "drawing_bounds",
    "screen_bounds",
    "pick",
    "SelectionMode",
    "SelectionSet",
    "entities_in_rect",
    "select_in_rect",
    "translate",
    "move_entities",
    "copy_entities",
    "Drawable",
    "build_drawables",
    "plot",
    "Session",
    "save_view_state",
    "load_view_state",
    "to_dxf",
    "ConvertResult",
]


def main(argv: Sequence[str] | None = None) -> int:
    from ezview.cli import main as cli_main

    return cli_main(argv)
