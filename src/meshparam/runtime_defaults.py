"""
Runtime defaults for parameterization and export.

Values can be overridden via environment variables so batch scripts and the
CLI share one place for tuning.
"""

from __future__ import annotations

from dataclasses import dataclass
import os


ENV_SOLVER = "MESHPARAM_SOLVER"
ENV_SOLVER_MAX_ITERATIONS = "MESHPARAM_SOLVER_MAX_ITERATIONS"
ENV_SOLVER_TOLERANCE = "MESHPARAM_SOLVER_TOLERANCE"
ENV_BORDER = "MESHPARAM_BORDER"
ENV_BORDER_SPACING = "MESHPARAM_BORDER_SPACING"
ENV_EXPORT_RESOLUTION = "MESHPARAM_EXPORT_RESOLUTION"

SOLVER_CHOICES = ("direct", "bicgstab")
BORDER_CHOICES = ("circle", "square")
SPACING_CHOICES = ("arc_length", "uniform")


@dataclass(frozen=True)
class RuntimeDefaults:
    solver: str
    solver_max_iterations: int
    solver_tolerance: float
    border: str
    border_spacing: str
    export_resolution: int


def _read_int_env(
    env_name: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_float_env(
    env_name: str,
    default: float,
    *,
    min_exclusive: float | None = None,
    max_exclusive: float | None = None,
) -> float:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if value != value:  # NaN
        return default
    if min_exclusive is not None and value <= min_exclusive:
        return default
    if max_exclusive is not None and value >= max_exclusive:
        return default
    return value


def _read_choice_env(env_name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    value = str(raw).strip().lower().replace("-", "_")
    return value if value in choices else default


def load_runtime_defaults() -> RuntimeDefaults:
    return RuntimeDefaults(
        solver=_read_choice_env(ENV_SOLVER, "direct", SOLVER_CHOICES),
        solver_max_iterations=_read_int_env(ENV_SOLVER_MAX_ITERATIONS, 5000, min_value=1, max_value=1_000_000),
        solver_tolerance=_read_float_env(ENV_SOLVER_TOLERANCE, 1e-10, min_exclusive=0.0, max_exclusive=1.0),
        border=_read_choice_env(ENV_BORDER, "circle", BORDER_CHOICES),
        border_spacing=_read_choice_env(ENV_BORDER_SPACING, "arc_length", SPACING_CHOICES),
        export_resolution=_read_int_env(ENV_EXPORT_RESOLUTION, 2048, min_value=64, max_value=16384),
    )


DEFAULTS = load_runtime_defaults()
