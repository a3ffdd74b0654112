from .boundary import BoundaryConditions, Wall, WallPolicy
from .error import (
    DimensionMismatchError,
    ErrorHandlingAction,
    ErrorHandlingConfiguration,
    InterpolationError,
    InvalidMethodError,
    MalformedBoundaryConditionsError,
    UnsupportedGridLayoutError,
    get_error_handling_config,
    set_error_handling_config,
)
from .grid import GridLayout, RegularGrid, normalize_grid
from .interpolation import InterpolationOperator, interp2_matrix, interp2_operator
from .stencil import Method
from ._version import version as __version__

__all__ = [
    "BoundaryConditions",
    "DimensionMismatchError",
    "ErrorHandlingAction",
    "ErrorHandlingConfiguration",
    "GridLayout",
    "InterpolationError",
    "InterpolationOperator",
    "InvalidMethodError",
    "MalformedBoundaryConditionsError",
    "Method",
    "RegularGrid",
    "UnsupportedGridLayoutError",
    "Wall",
    "WallPolicy",
    "get_error_handling_config",
    "interp2_matrix",
    "interp2_operator",
    "normalize_grid",
    "set_error_handling_config",
    "__version__",
]
