from meshparam.runtime_defaults import (
    ENV_BORDER,
    ENV_BORDER_SPACING,
    ENV_EXPORT_RESOLUTION,
    ENV_SOLVER,
    ENV_SOLVER_MAX_ITERATIONS,
    ENV_SOLVER_TOLERANCE,
    load_runtime_defaults,
)


def _clear_runtime_env(monkeypatch):
    for key in (
        ENV_SOLVER,
        ENV_SOLVER_MAX_ITERATIONS,
        ENV_SOLVER_TOLERANCE,
        ENV_BORDER,
        ENV_BORDER_SPACING,
        ENV_EXPORT_RESOLUTION,
    ):
        monkeypatch.delenv(key, raising=False)


def test_runtime_defaults_without_env(monkeypatch):
    _clear_runtime_env(monkeypatch)
    defaults = load_runtime_defaults()

    assert defaults.solver == "direct"
    assert defaults.solver_max_iterations == 5000
    assert defaults.solver_tolerance == 1e-10
    assert defaults.border == "circle"
    assert defaults.border_spacing == "arc_length"
    assert defaults.export_resolution == 2048


def test_runtime_defaults_with_valid_env(monkeypatch):
    _clear_runtime_env(monkeypatch)
    monkeypatch.setenv(ENV_SOLVER, "BiCGStab")
    monkeypatch.setenv(ENV_SOLVER_MAX_ITERATIONS, "800")
    monkeypatch.setenv(ENV_SOLVER_TOLERANCE, "1e-8")
    monkeypatch.setenv(ENV_BORDER, "square")
    monkeypatch.setenv(ENV_BORDER_SPACING, "uniform")
    monkeypatch.setenv(ENV_EXPORT_RESOLUTION, "4096")

    defaults = load_runtime_defaults()

    assert defaults.solver == "bicgstab"
    assert defaults.solver_max_iterations == 800
    assert defaults.solver_tolerance == 1e-8
    assert defaults.border == "square"
    assert defaults.border_spacing == "uniform"
    assert defaults.export_resolution == 4096


def test_runtime_defaults_invalid_values_fallback(monkeypatch):
    _clear_runtime_env(monkeypatch)
    monkeypatch.setenv(ENV_SOLVER, "cholmod")
    monkeypatch.setenv(ENV_SOLVER_MAX_ITERATIONS, "-1")
    monkeypatch.setenv(ENV_SOLVER_TOLERANCE, "nan")
    monkeypatch.setenv(ENV_BORDER, "triangle")
    monkeypatch.setenv(ENV_BORDER_SPACING, "")
    monkeypatch.setenv(ENV_EXPORT_RESOLUTION, "abc")

    defaults = load_runtime_defaults()

    assert defaults.solver == "direct"
    assert defaults.solver_max_iterations == 5000
    assert defaults.solver_tolerance == 1e-10
    assert defaults.border == "circle"
    assert defaults.border_spacing == "arc_length"
    assert defaults.export_resolution == 2048


def test_runtime_defaults_out_of_range(monkeypatch):
    _clear_runtime_env(monkeypatch)
    monkeypatch.setenv(ENV_SOLVER_TOLERANCE, "1.5")
    monkeypatch.setenv(ENV_EXPORT_RESOLUTION, "32")

    defaults = load_runtime_defaults()

    assert defaults.solver_tolerance == 1e-10
    assert defaults.export_resolution == 2048
