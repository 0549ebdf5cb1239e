"""
meshparam - fixed-border parameterization of disc-like meshes

Main entry point
"""

import sys
import os
import logging
from pathlib import Path

# Ensure the source directory is on sys.path so "meshparam" is importable without install.
ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from meshparam.runtime_defaults import DEFAULTS
from meshparam.output_paths import (
    uv_mesh_output_path,
    uv_layout_svg_path,
    uv_layout_png_path,
)

_LOGGER = logging.getLogger(__name__)
DEFAULT_MESH_UNIT = "mm"


def _pop_option(args: list, name: str, default=None):
    """`--name value` 형태의 옵션을 args에서 제거하고 값을 반환"""
    if name in args:
        idx = args.index(name)
        if idx + 1 < len(args):
            value = args[idx + 1]
            del args[idx:idx + 2]
            return value
        del args[idx]
    return default


def run_cli(argv=None) -> int:
    """커맨드라인 인터페이스 실행 (종료 코드 반환)"""
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in args
    if verbose:
        args.remove("--verbose")

    try:
        from meshparam.logging_utils import setup_logging

        setup_logging(log_level="DEBUG" if verbose else "INFO", console=verbose)
    except Exception as e:
        _LOGGER.debug("Failed to initialize logging: %s", e, exc_info=True)

    options = {
        "method": _pop_option(args, "--weights", "mean_value"),
        "border": _pop_option(args, "--border"),
        "spacing": _pop_option(args, "--spacing"),
        "solver": _pop_option(args, "--solver"),
    }

    if not args:
        print_help()
        return 0

    cmd = args[0]

    if cmd == '--help' or cmd == '-h':
        print_help()
        return 0

    if cmd == '--info' and len(args) > 1:
        return show_file_info(args[1])

    if cmd == '--parameterize' and len(args) > 1:
        return parameterize_mesh(args[1], args[2] if len(args) > 2 else None, **options)

    if cmd == '--layout' and len(args) > 1:
        return export_layout(args[1], args[2] if len(args) > 2 else None, **options)

    # 기본: 전체 처리
    if os.path.exists(cmd):
        return process_mesh(cmd, **options)

    print(f"Error: Unknown command or file not found: {cmd}")
    print("Use --help for usage information")
    return 2


def print_help():
    """도움말 출력"""
    from meshparam.mesh_adaptor import MeshLoader

    print("=" * 60)
    print("meshparam - Fixed-border mesh parameterization")
    print("=" * 60)
    print()
    print("Usage:")
    print("  python main.py <mesh_file>                          # Parameterize + OBJ + SVG + PNG")
    print("  python main.py --info <mesh_file>                   # Show file / topology info")
    print("  python main.py --parameterize <mesh_file> [out.obj] # Write mesh with UVs")
    print("  python main.py --layout <mesh_file> [out.svg|png]   # Write UV layout only")
    print()
    print("Options:")
    print("  --weights mean_value|uniform|conformal|authalic  (default: mean_value)")
    print(f"  --border circle|square                            (default: {DEFAULTS.border})")
    print(f"  --spacing arc_length|uniform                      (default: {DEFAULTS.border_spacing})")
    print(f"  --solver direct|bicgstab                          (default: {DEFAULTS.solver})")
    print("  --verbose                                         (log to stderr)")
    print()
    print(f"Supported formats: {list(MeshLoader.SUPPORTED_FORMATS.keys())}")


def show_file_info(filepath: str) -> int:
    """파일 정보 표시"""
    from meshparam.mesh_adaptor import MeshLoader
    from meshparam.parameterizer import validate_mesh

    print(f"\nFile Info: {filepath}")
    print("-" * 40)

    try:
        loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
        info = loader.get_file_info(filepath)
        for key, value in info.items():
            print(f"  {key}: {value}")
        if 'error' not in info:
            status = validate_mesh(loader.load(filepath))
            print(f"  parameterizable: {status.ok} ({status.describe()})")
    except Exception as e:
        _LOGGER.exception("show_file_info failed: %s", filepath)
        print(f"  Error: {e}")
        return 1
    return 0


def _load_and_parameterize(filepath: str, **options):
    from meshparam.mesh_adaptor import MeshLoader
    from meshparam.parameterizer import parameterize_with_method

    loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
    mesh = loader.load(filepath)
    print(f"  Loaded: {mesh.n_vertices:,} vertices, {mesh.n_faces:,} faces")

    result = parameterize_with_method(mesh, **options)
    if not result.ok:
        print(f"  Failed: {result.status.describe()} (stage: {result.stage.value})")
        return result

    print(f"  Weights: {result.meta.get('weights')}, border: {result.meta.get('border')}")
    print(f"  Border vertices: {result.n_border_vertices:,}, interior: {result.n_interior_vertices:,}")
    print(f"  One-to-one guaranteed: {result.is_one_to_one}")
    print(f"  Distortion: {result.mean_distortion:.1%} (mean), {result.max_distortion:.1%} (max)")
    return result


def process_mesh(filepath: str, **options) -> int:
    """메쉬 전체 처리 (로드 → 파라미터화 → OBJ/SVG/PNG 저장)"""
    from meshparam.mesh_adaptor import MeshProcessor
    from meshparam.uv_exporter import UVLayoutExporter

    print(f"\n{'='*60}")
    print(f"Processing: {filepath}")
    print(f"{'='*60}")

    try:
        print("\n[1/3] Loading and parameterizing...")
        result = _load_and_parameterize(filepath, **options)
        if not result.ok:
            return 1

        print("\n[2/3] Saving mesh with UVs...")
        mesh_path = uv_mesh_output_path(filepath)
        MeshProcessor().save_mesh(result.mesh, mesh_path)
        print(f"      Saved: {mesh_path}")

        print("\n[3/3] Saving UV layout...")
        exporter = UVLayoutExporter()
        svg_path = exporter.export_svg(result, uv_layout_svg_path(filepath))
        png_path = exporter.export_png(result, uv_layout_png_path(filepath))
        print(f"      Saved: {svg_path}")
        print(f"      Saved: {png_path}")

        print(f"\n{'='*60}")
        print("Done!")
        print(f"{'='*60}")
    except Exception as e:
        _LOGGER.exception("process_mesh failed: %s", filepath)
        print(f"\nError: {e}")
        return 1
    return 0


def parameterize_mesh(filepath: str, output_path: str | None = None, **options) -> int:
    """파라미터화 후 UV 포함 메쉬만 저장"""
    from meshparam.mesh_adaptor import MeshProcessor

    print(f"\nParameterizing: {filepath}")
    print("-" * 40)

    try:
        result = _load_and_parameterize(filepath, **options)
        if not result.ok:
            return 1
        save_path = uv_mesh_output_path(filepath, output_path)
        MeshProcessor().save_mesh(result.mesh, save_path)
        print(f"  Saved: {save_path}")
    except Exception as e:
        _LOGGER.exception("parameterize_mesh failed: %s", filepath)
        print(f"Error: {e}")
        return 1
    return 0


def export_layout(filepath: str, output_path: str | None = None, **options) -> int:
    """UV 레이아웃(SVG 또는 PNG)만 저장"""
    from meshparam.uv_exporter import UVLayoutExporter

    print(f"\nUV layout: {filepath}")
    print("-" * 40)

    try:
        result = _load_and_parameterize(filepath, **options)
        if not result.ok:
            return 1
        exporter = UVLayoutExporter()
        if output_path and str(output_path).lower().endswith(".png"):
            saved = exporter.export_png(result, output_path)
        else:
            saved = exporter.export_svg(result, uv_layout_svg_path(filepath, output_path))
        print(f"  Saved: {saved}")
    except Exception as e:
        _LOGGER.exception("export_layout failed: %s", filepath)
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(run_cli())
