from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import OrderedDict
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .blocks import find_unresolved_inserts
from .bounds import drawing_bounds
from .convert import to_dxf
from .document import Drawing, read
from .entity import Entity
from .geometry import Box
from .hittest import PICK_TOLERANCE_PX
from .render import plot
from .selection import selection_mode
from .session import Session


def _package_version() -> str:
    try:
        return version("ezview")
    except PackageNotFoundError:
        return "0.0.0"


def _add_view_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--width", type=float, default=800.0, help="Viewport width in pixels.")
    parser.add_argument("--height", type=float, default=600.0, help="Viewport height in pixels.")
    parser.add_argument("--zoom", type=float, default=1.0, help="Zoom factor on top of the fit.")
    parser.add_argument("--pan-x", type=float, default=0.0, help="Horizontal pan in pixels.")
    parser.add_argument("--pan-y", type=float, default=0.0, help="Vertical pan in pixels.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ezview",
        description="Inspect, pick, select, plot and edit 2D DXF drawings.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show basic drawing information.")
    inspect_parser.add_argument("path", help="Path to DXF file.")

    pick_parser = subparsers.add_parser("pick", help="Report the entity under a screen point.")
    pick_parser.add_argument("path", help="Path to DXF file.")
    pick_parser.add_argument("sx", type=float, help="Screen x in pixels.")
    pick_parser.add_argument("sy", type=float, help="Screen y in pixels.")
    _add_view_arguments(pick_parser)
    pick_parser.add_argument(
        "--tolerance",
        type=float,
        default=PICK_TOLERANCE_PX,
        help="Pick tolerance in pixels.",
    )

    select_parser = subparsers.add_parser(
        "select",
        help="Select entities with a screen rectangle dragged from (X1, Y1) to (X2, Y2).",
    )
    select_parser.add_argument("path", help="Path to DXF file.")
    select_parser.add_argument("x1", type=float)
    select_parser.add_argument("y1", type=float)
    select_parser.add_argument("x2", type=float)
    select_parser.add_argument("y2", type=float)
    _add_view_arguments(select_parser)

    plot_parser = subparsers.add_parser("plot", help="Render the drawing to an image with matplotlib.")
    plot_parser.add_argument("path", help="Path to DXF file.")
    plot_parser.add_argument("output_path", help="Path to output image file.")
    plot_parser.add_argument("--width", type=float, default=800.0, help="Viewport width in pixels.")
    plot_parser.add_argument("--height", type=float, default=600.0, help="Viewport height in pixels.")
    plot_parser.add_argument(
        "--view-state",
        default=None,
        help="JSON file with saved zoom, pan, layer colors and visibility.",
    )

    translate_parser = subparsers.add_parser(
        "translate",
        help="Move or copy entities by a world offset and write DXF.",
    )
    translate_parser.add_argument("path", help="Path to DXF file.")
    translate_parser.add_argument("output_path", help="Path to output DXF file.")
    translate_parser.add_argument("--dx", type=float, default=0.0, help="World x offset.")
    translate_parser.add_argument("--dy", type=float, default=0.0, help="World y offset.")
    translate_parser.add_argument(
        "--handles",
        default=None,
        help='Comma separated entity handles, e.g. "1,2,5". Defaults to all entities.',
    )
    translate_parser.add_argument(
        "--copy",
        action="store_true",
        help="Add translated copies instead of moving the originals.",
    )
    return parser


def _load(path: str) -> Drawing | None:
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return None
    try:
        return read(str(file_path))
    except Exception as exc:
        print(f"error: failed to read DXF: {exc}", file=sys.stderr)
        return None


def _session(drawing: Drawing, args: argparse.Namespace) -> Session:
    session = Session(viewport_width=args.width, viewport_height=args.height)
    session.load(drawing)
    if args.zoom != 1.0:
        session.zoom_at(*session.view.viewport_center, args.zoom)
    session.pan_by(args.pan_x, args.pan_y)
    return session


def _describe(entity: Entity) -> str:
    return f"{entity.handle} {entity.dxftype} layer={entity.layer}"


def _format_box(box: Box | None) -> str:
    if box is None:
        return "none"
    return f"({box.min_x:g}, {box.min_y:g}) - ({box.max_x:g}, {box.max_y:g})"


def _run_inspect(path: str) -> int:
    drawing = _load(path)
    if drawing is None:
        return 2

    counts: OrderedDict[str, int] = OrderedDict()
    for entity in drawing.query():
        counts[entity.dxftype] = counts.get(entity.dxftype, 0) + 1

    print(f"file: {drawing.path}")
    print(f"file_id: {drawing.file_id}")
    print(f"entities: {len(drawing)}")
    for dxftype, count in counts.items():
        print(f"  {dxftype}: {count}")
    print(f"blocks: {len(drawing.blocks)}")
    print(f"layers: {len(drawing.layer_colors)}")
    for name, count, color in drawing.layer_summary():
        print(f"  {name}: {count} #{color:06x}")
    print(f"bounds: {_format_box(drawing_bounds(drawing))}")

    unresolved = find_unresolved_inserts(drawing.entities, drawing.blocks)
    print(f"unresolved_inserts: {len(unresolved)}")
    for entity, exc in unresolved:
        print(f"  {entity.handle}: {exc.reason}")
    return 0


def _run_pick(args: argparse.Namespace) -> int:
    drawing = _load(args.path)
    if drawing is None:
        return 2
    try:
        session = _session(drawing, args)
        session.pick_tolerance_px = args.tolerance
        hit = session.pick(args.sx, args.sy)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if hit is None:
        print("no match")
    else:
        print(_describe(hit))
    return 0


def _run_select(args: argparse.Namespace) -> int:
    drawing = _load(args.path)
    if drawing is None:
        return 2
    try:
        session = _session(drawing, args)
        hits = session.finish_drag((args.x1, args.y1), (args.x2, args.y2))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"mode: {selection_mode(args.x1, args.x2).value}")
    print(f"selected: {len(hits)}")
    for entity in hits:
        print(f"  {_describe(entity)}")
    return 0


def _run_plot(args: argparse.Namespace) -> int:
    drawing = _load(args.path)
    if drawing is None:
        return 2

    session = Session(viewport_width=args.width, viewport_height=args.height)
    state = None
    if args.view_state is not None:
        try:
            state = json.loads(Path(args.view_state).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            print(f"error: failed to read view state: {exc}", file=sys.stderr)
            return 2
        if not isinstance(state, dict):
            print("error: view state must be a JSON object", file=sys.stderr)
            return 2
    session.load(drawing, state)

    try:
        ax = plot(session, show=False, title=Path(args.path).name)
        out_path = Path(args.output_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        ax.figure.savefig(str(out_path))
    except Exception as exc:
        print(f"error: failed to plot: {exc}", file=sys.stderr)
        return 2

    print(f"output: {args.output_path}")
    return 0


def _parse_handles(text: str | None) -> list[int] | None:
    if text is None:
        return None
    return [int(token) for token in text.replace(",", " ").split()]


def _run_translate(args: argparse.Namespace) -> int:
    drawing = _load(args.path)
    if drawing is None:
        return 2

    try:
        handles = _parse_handles(args.handles)
    except ValueError:
        print(f"error: invalid handles: {args.handles}", file=sys.stderr)
        return 2

    session = Session()
    session.load(drawing)
    if handles is None:
        session.selection.update(drawing.entities)
    else:
        missing = [handle for handle in handles if drawing.get(handle) is None]
        if missing:
            print(f"error: unknown handles: {', '.join(map(str, missing))}", file=sys.stderr)
            return 2
        session.selection.update(handles)

    if args.copy:
        changed = session.duplicate_selection(args.dx, args.dy)
    else:
        changed = session.translate_selection(args.dx, args.dy)

    try:
        result = to_dxf(drawing, args.output_path)
    except Exception as exc:
        print(f"error: failed to write DXF: {exc}", file=sys.stderr)
        return 2

    print(f"{'copied' if args.copy else 'moved'}: {len(changed)}")
    print(f"output: {result.output_path}")
    print(f"written_entities: {result.written_entities}")
    for dxftype, count in result.skipped_by_type.items():
        print(f"skipped[{dxftype}]: {count}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "inspect":
        return _run_inspect(args.path)
    if args.command == "pick":
        return _run_pick(args)
    if args.command == "select":
        return _run_select(args)
    if args.command == "plot":
        return _run_plot(args)
    if args.command == "translate":
        return _run_translate(args)

    parser.print_help()
    return 0
