import ezview


def main() -> None:
    drawing = ezview.read("examples/data/floorplan.dxf")
    session = ezview.Session(viewport_width=1200, viewport_height=800)
    session.load(drawing, ezview.load_view_state(".", drawing.file_id))

    hit = session.pick(600, 400)
    print("center pick:", None if hit is None else (hit.handle, hit.dxftype, hit.layer))

    session.finish_drag((1150, 750), (50, 50))
    print(f"crossing selection: {len(session.selection)} entities")

    session.zoom_wheel(600, 400, -120)
    ax = ezview.plot(session, show=False, title="Floor plan")
    ax.figure.savefig("floorplan.png", dpi=150)
    print("saved: floorplan.png")
    print("view state:", ezview.save_view_state(session, "."))


if __name__ == "__main__":
    main()
