import ezview


drawing = ezview.read("examples/data/floorplan.dxf")
walls = [entity.handle for entity in drawing.query("LINE LWPOLYLINE") if entity.layer == "walls"]

session = ezview.Session()
session.load(drawing)
session.selection.update(walls)
session.duplicate_selection(0.0, 1000.0)

result = ezview.to_dxf(drawing, "/tmp/floorplan_copied.dxf", dxf_version="R2010")
print(result)
