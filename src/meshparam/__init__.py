"""
meshparam: fixed-border parameterization of disc-like triangle meshes
"""

from .errors import ErrorCode, DegenerateGeometryError
from .mesh_adaptor import MeshData, MeshLoader, MeshProcessor
from .border import BorderParameterizer, CircularBorderParameterizer, SquareBorderParameterizer
from .weights import (
    WeightStrategy,
    MeanValueWeights,
    UniformWeights,
    DiscreteConformalWeights,
    DiscreteAuthalicWeights,
)
from .linear_algebra import SparseLinearSystem, DirectSolver, BiCGStabSolver
from .parameterizer import (
    FixedBorderParameterizer,
    MeanValueCoordinatesParameterizer,
    ParameterizationResult,
    Stage,
    parameterize_with_method,
    validate_mesh,
)
from .distortion import check_parameterization, compute_distortion, count_flipped_faces
from .uv_exporter import UVLayoutExporter, UVLayoutOptions

__all__ = [
    # Status
    'ErrorCode',
    'DegenerateGeometryError',
    # Mesh adaptor
    'MeshData',
    'MeshLoader',
    'MeshProcessor',
    # Border policies
    'BorderParameterizer',
    'CircularBorderParameterizer',
    'SquareBorderParameterizer',
    # Weight strategies
    'WeightStrategy',
    'MeanValueWeights',
    'UniformWeights',
    'DiscreteConformalWeights',
    'DiscreteAuthalicWeights',
    # Linear algebra
    'SparseLinearSystem',
    'DirectSolver',
    'BiCGStabSolver',
    # Parameterization
    'FixedBorderParameterizer',
    'MeanValueCoordinatesParameterizer',
    'ParameterizationResult',
    'Stage',
    'parameterize_with_method',
    'validate_mesh',
    # Quality
    'check_parameterization',
    'compute_distortion',
    'count_flipped_faces',
    # Export
    'UVLayoutExporter',
    'UVLayoutOptions',
]
