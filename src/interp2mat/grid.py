"""
Reference grid normalization.

The reference grid may be given as a pair of axis vectors, or as a pair of
2D coordinate matrices in ndgrid (``indexing="ij"``) or meshgrid
(``indexing="xy"``) layout. All are reduced to a :class:`.RegularGrid`
holding two increasing 1D axes; the operator is always built against the
ndgrid-equivalent ordering of grid points.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any, Literal

import attrs
import numpy as np
import pint

from .error import (
    ErrorHandlingConfiguration,
    MeshgridLayoutWarning,
    NonUniformSpacingWarning,
    UnsupportedGridLayoutError,
    handle_error,
)
from .units import attach_units, get_unit_registry, split_units

logger = logging.getLogger(__name__)

#: Relative tolerance used when checking that axis spacing is uniform
SPACING_RTOL = 1e-6


class GridLayout(enum.Enum):
    """
    Reference grid layout descriptors.
    """

    VECTOR = "vector"  #: Pair of 1D axis vectors.
    NDGRID = "ndgrid"  #: 2D matrices, X varies along axis 0.
    MESHGRID = "meshgrid"  #: 2D matrices, X varies along axis 1.


def _dimensionless():
    return get_unit_registry().dimensionless


def _axis_converter(value) -> np.ndarray:
    return np.asarray(value, dtype=np.float64).ravel()


@attrs.frozen
class RegularGrid:
    """
    Uniformly spaced Cartesian reference grid.

    Parameters
    ----------
    xref : ndarray
        X axis, strictly increasing. Shape (nx,).

    yref : ndarray
        Y axis, strictly increasing. Shape (ny,).

    layout : GridLayout, default: VECTOR
        Layout in which the grid was supplied.

    x_units, y_units : pint.Unit, default: dimensionless
        Units of the X and Y axes.
    """

    xref: np.ndarray = attrs.field(converter=_axis_converter, eq=False)
    yref: np.ndarray = attrs.field(converter=_axis_converter, eq=False)
    layout: GridLayout = attrs.field(
        default=GridLayout.VECTOR, repr=lambda x: f"<{x.name}>"
    )
    x_units: pint.Unit = attrs.field(factory=_dimensionless, repr=str)
    y_units: pint.Unit = attrs.field(factory=_dimensionless, repr=str)

    @property
    def nx(self) -> int:
        return self.xref.size

    @property
    def ny(self) -> int:
        return self.yref.size

    @property
    def shape(self) -> tuple[int, int]:
        """Shape of the ndgrid-layout mesh, (nx, ny)."""
        return (self.nx, self.ny)

    @property
    def size(self) -> int:
        """Number of grid points, i.e. number of operator columns."""
        return self.nx * self.ny

    @property
    def dx(self) -> float:
        # Only the first two samples are used: uniform spacing is a precondition
        return float(self.xref[1] - self.xref[0])

    @property
    def dy(self) -> float:
        return float(self.yref[1] - self.yref[0])

    def flat_coordinates(
        self, order: Literal["C", "F"] = "C"
    ) -> tuple[np.ndarray | pint.Quantity, np.ndarray | pint.Quantity]:
        """
        Coordinates of every grid point, in operator column order.

        Parameters
        ----------
        order : {"C", "F"}, default: "C"
            Flattening order of the ndgrid-layout mesh. Must match the order
            used to build the operator.

        Returns
        -------
        xout, yout : ndarray or quantity
            Flattened X and Y coordinates. Shape (nx * ny,). Units are
            attached when the axes are not dimensionless.

        Examples
        --------
        >>> grid = RegularGrid([0.0, 1.0], [10.0, 20.0, 30.0])
        >>> grid.flat_coordinates()
        (array([0., 0., 0., 1., 1., 1.]), array([10., 20., 30., 10., 20., 30.]))
        """
        xout, yout = np.meshgrid(self.xref, self.yref, indexing="ij")
        return (
            attach_units(xout.ravel(order=order), self.x_units),
            attach_units(yout.ravel(order=order), self.y_units),
        )


def _is_vector(a: np.ndarray) -> bool:
    return a.ndim == 1 or (a.ndim == 2 and min(a.shape) == 1)


def detect_layout(
    X: np.ndarray, Y: np.ndarray
) -> tuple[GridLayout, np.ndarray, np.ndarray]:
    """
    Detect the layout of a grid and extract its 1D axes.

    Parameters
    ----------
    X, Y : ndarray
        Grid coordinates, as vectors or as same-shape 2D matrices.

    Returns
    -------
    layout : GridLayout
        Detected layout.

    xref, yref : ndarray
        Extracted axes (not yet validated).

    Raises
    ------
    UnsupportedGridLayoutError
        If the inputs are neither vectors nor an ndgrid or meshgrid mesh.
    """
    if _is_vector(X) and _is_vector(Y):
        return GridLayout.VECTOR, X.ravel(), Y.ravel()

    if X.ndim != 2 or X.shape != Y.shape:
        raise UnsupportedGridLayoutError(
            "X and Y must be 1D vectors or 2D matrices of identical shape "
            f"(got shapes {X.shape} and {Y.shape})"
        )

    if np.all(X == X[:, :1]) and np.all(Y == Y[:1, :]):
        return GridLayout.NDGRID, X[:, 0], Y[0, :]

    if np.all(X == X[:1, :]) and np.all(Y == Y[:, :1]):
        return GridLayout.MESHGRID, X[0, :], Y[:, 0]

    raise UnsupportedGridLayoutError(
        "X and Y matrices are neither in ndgrid nor in meshgrid layout"
    )


def _validate_axis(name: str, axis: np.ndarray) -> None:
    if axis.size < 2:
        raise UnsupportedGridLayoutError(
            f"axis {name!r} must have at least 2 samples (got {axis.size})"
        )
    if not np.all(np.isfinite(axis)):
        raise UnsupportedGridLayoutError(f"axis {name!r} contains non-finite values")
    if np.any(np.diff(axis) <= 0.0):
        raise UnsupportedGridLayoutError(f"axis {name!r} is not strictly increasing")


def _check_spacing(name: str, axis: np.ndarray, config: ErrorHandlingConfiguration):
    step = axis[1] - axis[0]
    if not np.allclose(np.diff(axis), step, rtol=SPACING_RTOL, atol=0.0):
        handle_error(
            UnsupportedGridLayoutError(
                f"axis {name!r} is not uniformly spaced; the spacing of its first "
                f"two samples ({step:g}) is assumed everywhere"
            ),
            config.spacing,
            NonUniformSpacingWarning,
        )


def normalize_grid(
    X: Any,
    Y: Any,
    error_handling_config: Mapping | ErrorHandlingConfiguration | None = None,
) -> RegularGrid:
    """
    Reduce a reference grid to a :class:`.RegularGrid`.

    Parameters
    ----------
    X, Y : array-like or quantity
        Grid coordinates: either two axis vectors (of possibly different
        lengths), or two 2D matrices of identical shape in ndgrid or meshgrid
        layout.

    error_handling_config : mapping or ErrorHandlingConfiguration, optional
        Error handling configuration. Defaults to the global configuration.

    Returns
    -------
    RegularGrid

    Raises
    ------
    UnsupportedGridLayoutError
        If the grid cannot be reduced to strictly increasing 1D axes with at
        least 2 samples each.

    Warns
    -----
    MeshgridLayoutWarning
        If the grid is in meshgrid layout (depending on configuration).

    NonUniformSpacingWarning
        If an axis is not uniformly spaced (depending on configuration).

    Examples
    --------
    >>> X, Y = np.meshgrid([0.0, 1.0, 2.0], [0.0, 0.5], indexing="ij")
    >>> grid = normalize_grid(X, Y)
    >>> grid.layout, grid.shape, grid.dy
    (<GridLayout.NDGRID: 'ndgrid'>, (3, 2), 0.5)
    """
    config = ErrorHandlingConfiguration.convert(error_handling_config)

    X, x_units = split_units(X)
    Y, y_units = split_units(Y)
    layout, xref, yref = detect_layout(X, Y)

    if layout is GridLayout.MESHGRID:
        handle_error(
            UnsupportedGridLayoutError(
                "meshgrid layout is not advised; the grid is converted to ndgrid "
                "layout, transpose field values accordingly"
            ),
            config.meshgrid,
            MeshgridLayoutWarning,
        )

    _validate_axis("x", xref)
    _validate_axis("y", yref)
    _check_spacing("x", xref, config)
    _check_spacing("y", yref, config)

    grid = RegularGrid(xref, yref, layout=layout, x_units=x_units, y_units=y_units)
    logger.debug(
        "normalized %s grid: nx=%d, ny=%d, dx=%g, dy=%g",
        layout.value,
        grid.nx,
        grid.ny,
        grid.dx,
        grid.dy,
    )
    return grid
