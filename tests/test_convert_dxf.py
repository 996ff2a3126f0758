from __future__ import annotations

from pathlib import Path

import pytest

import ezview
from ezview.entity import Entity
from tests._dxf_helpers import (
    circle,
    drawing,
    dxf_entities_of_type,
    dxf_polyline_points,
    group_float,
    group_value,
    insert,
    iter_dxf_records,
    line,
    polyline,
)


def test_to_dxf_writes_supported_entities(tmp_path: Path) -> None:
    output = tmp_path / "out" / "drawing.dxf"
    d = drawing(
        line(1, (0.0, 0.0), (10.0, 0.0), layer="walls", color=1),
        circle(2, (5.0, 5.0), 2.0),
        Entity("ARC", 3, {"center": (0.0, 0.0), "radius": 3.0, "start_angle": 10.0, "end_angle": 80.0}),
        polyline(4, [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0)], closed=True),
        layer_colors={"walls": 0x112233},
    )

    result = ezview.to_dxf(d, str(output))

    assert output.exists()
    assert result.total_entities == 4
    assert result.written_entities == 4
    assert result.skipped_entities == 0
    (out_line,) = dxf_entities_of_type(output, "LINE")
    assert group_value(out_line, "8") == "walls"
    assert group_value(out_line, "62") == "1"
    assert group_float(out_line, "11") == 10.0
    (out_arc,) = dxf_entities_of_type(output, "ARC")
    assert group_float(out_arc, "50") == pytest.approx(10.0)
    assert group_float(out_arc, "51") == pytest.approx(80.0)
    (out_poly,) = dxf_entities_of_type(output, "LWPOLYLINE")
    assert dxf_polyline_points(out_poly) == [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0)]
    assert int(group_value(out_poly, "70")) & 1 == 1


def test_to_dxf_writes_blocks_before_inserts(tmp_path: Path) -> None:
    output = tmp_path / "blocks.dxf"
    d = drawing(
        insert(10, "DOOR", (20.0, 20.0), xscale=2.0, rotation=90.0),
        blocks={"DOOR": (line(1, (0.0, 0.0), (1.0, 0.0)),)},
    )

    result = ezview.to_dxf(d, str(output))

    assert result.written_entities == 1
    (ref,) = dxf_entities_of_type(output, "INSERT")
    assert group_value(ref, "2") == "DOOR"
    assert group_float(ref, "41") == 2.0
    assert group_float(ref, "50") == 90.0
    block_records = list(iter_dxf_records(output, "BLOCKS"))
    assert any(r["type"] == "BLOCK" and group_value(r, "2") == "DOOR" for r in block_records)


def test_to_dxf_counts_skipped_entities(tmp_path: Path) -> None:
    d = drawing(
        line(1, (0.0, 0.0), (1.0, 0.0)),
        Entity("TEXT", 2, {"insert": (0.0, 0.0)}),
        Entity("CIRCLE", 3, {"center": (0.0, 0.0)}),
    )
    result = ezview.to_dxf(d, str(tmp_path / "skips.dxf"))

    assert result.total_entities == 3
    assert result.written_entities == 1
    assert result.skipped_by_type == {"CIRCLE": 1, "TEXT": 1}


def test_to_dxf_strict_raises_without_writing(tmp_path: Path) -> None:
    output = tmp_path / "strict.dxf"
    d = drawing(Entity("TEXT", 1, {"insert": (0.0, 0.0)}))
    with pytest.raises(ValueError, match="TEXT:1"):
        ezview.to_dxf(d, str(output), strict=True)
    assert not output.exists()


def test_edited_drawing_round_trips_through_read(tmp_path: Path) -> None:
    d = drawing(line(1, (0.0, 0.0), (1.0, 0.0)), layer_colors={"0": 0xFFFFFF})
    ezview.copy_entities(d, d.entities, 5.0, 5.0)
    output = tmp_path / "edited.dxf"
    ezview.to_dxf(d, str(output))

    reread = ezview.read(str(output))

    assert [e.dxf["start"] for e in reread.entities] == [(0.0, 0.0), (5.0, 5.0)]
    assert reread.layer_colors["0"] == 0xFFFFFF
