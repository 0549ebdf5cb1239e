from pathlib import Path

from meshparam.output_paths import uv_layout_png_path, uv_layout_svg_path, uv_mesh_output_path


def test_default_output_paths_follow_input():
    src = Path("scans") / "sherd_12.ply"
    assert uv_mesh_output_path(src) == Path("scans") / "sherd_12.uv.obj"
    assert uv_layout_svg_path(src) == Path("scans") / "sherd_12.uv.svg"
    assert uv_layout_png_path(str(src)) == Path("scans") / "sherd_12.uv.png"


def test_explicit_output_path_wins():
    assert uv_mesh_output_path("a.obj", "out/b.obj") == Path("out/b.obj")
    assert uv_layout_svg_path("a.obj", Path("c.svg")) == Path("c.svg")
    assert uv_layout_png_path("a.obj", "") == Path("a.uv.png")
