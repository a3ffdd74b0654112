"""
2D grid interpolation as a sparse matrix.

This module builds the sparse linear operator equivalent to interpolating
field values sampled on a regular 2D grid at a fixed set of query points.
Once built, the operator is applied to any number of fields with a sparse
matrix product, which avoids repeating the location and weight computations.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping, Sequence
from typing import Any, Literal

import attrs
import numpy as np
import pint
import xarray as xr
from scipy.sparse import csr_matrix

from .assemble import assemble, stencil_indices
from .boundary import BoundaryConditions, resolve_boundaries
from .error import (
    DimensionMismatchError,
    ErrorHandlingConfiguration,
    MalformedBoundaryConditionsError,
)
from .grid import RegularGrid, normalize_grid
from .locate import locate_queries
from .stencil import Method, compute_stencil
from .units import magnitude_in, xarray_to_quantity

logger = logging.getLogger(__name__)


def _check_order(instance, attribute, value):
    if value not in ("C", "F"):
        raise ValueError(f"'{attribute.name}' must be 'C' or 'F' (got {value!r})")


@attrs.frozen
class InterpolationOperator:
    """
    Sparse 2D interpolation operator.

    Parameters
    ----------
    matrix : csr_matrix
        Interpolation matrix. Shape (nq, nx * ny).

    grid : RegularGrid
        Reference grid of the operator columns.

    method : Method
        Interpolation method.

    query_shape : tuple of int
        Shape of the query arrays the operator was built for.

    out_of_bounds : ndarray
        Indices of the operator rows corresponding to out-of-bounds queries.
        These rows are empty.

    order : {"C", "F"}, default: "C"
        Flattening order of the ndgrid-layout (nx, ny) mesh mapping grid nodes
        to operator columns.
    """

    matrix: csr_matrix = attrs.field(
        eq=False, repr=lambda x: f"<{x.shape[0]}x{x.shape[1]} sparse, nnz={x.nnz}>"
    )
    grid: RegularGrid = attrs.field(repr=False)
    method: Method = attrs.field(repr=lambda x: f"<{x.name}>")
    query_shape: tuple[int, ...] = attrs.field(converter=tuple)
    out_of_bounds: np.ndarray = attrs.field(eq=False, repr=False)
    order: Literal["C", "F"] = attrs.field(default="C", validator=_check_order)

    @property
    def shape(self) -> tuple[int, int]:
        """Shape of the operator matrix."""
        return self.matrix.shape

    def _flatten_field(self, values: np.ndarray) -> np.ndarray:
        if values.shape[-2:] == self.grid.shape:
            if self.order == "F":
                values = np.swapaxes(values, -1, -2)
            return values.reshape(values.shape[:-2] + (self.grid.size,))

        if values.shape[-1:] == (self.grid.size,):
            return values

        raise DimensionMismatchError(
            f"field values of shape {values.shape} do not match the grid: expected "
            f"trailing dimensions {self.grid.shape} or ({self.grid.size},)"
        )

    def apply(self, values: Any) -> np.ndarray | pint.Quantity:
        """
        Interpolate field values at the query points.

        Parameters
        ----------
        values : array-like or quantity
            Field values sampled on the grid, either as a (..., nx, ny) array
            in ndgrid layout or as a (..., nx * ny) array flattened in the
            operator column order. Leading dimensions are broadcast over.

        Returns
        -------
        ndarray or quantity
            Interpolated values. Shape (..., *query_shape). Quantities keep
            their units. Out-of-bounds queries evaluate to 0.

        Raises
        ------
        DimensionMismatchError
            If the trailing dimensions of ``values`` do not match the grid.

        Examples
        --------
        >>> op = interp2_operator([0.0, 1.0, 2.0], [0.0, 1.0], [0.5, 1.5], [0.5, 0.5])
        >>> op.apply(np.array([[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]]))
        array([1.5, 3.5])
        """
        units = None
        if isinstance(values, pint.Quantity):
            values, units = values.magnitude, values.units

        flat = self._flatten_field(np.asarray(values))
        batch_shape = flat.shape[:-1]
        result = np.asarray((self.matrix @ flat.reshape(-1, self.grid.size).T).T)
        result = result.reshape(batch_shape + self.query_shape)

        return result if units is None else result * units

    __call__ = apply

    def apply_dataarray(
        self,
        da: xr.DataArray,
        x_dim: Hashable = "x",
        y_dim: Hashable = "y",
        query_dims: Sequence[Hashable] | None = None,
    ) -> xr.DataArray:
        """
        Interpolate a labelled field at the query points.

        Parameters
        ----------
        da : DataArray
            Field values. Must have the ``x_dim`` and ``y_dim`` dimensions;
            their coordinates, when present, must match the grid axes (they
            are converted to the grid units if they carry a ``units``
            attribute). Other dimensions are broadcast over.

        x_dim, y_dim : hashable, default: "x", "y"
            Names of the dimensions holding the grid axes.

        query_dims : sequence of hashable, optional
            Names of the output query dimensions. Defaults to ``("point",)``
            for 1D queries and ``("point_0", "point_1", ...)`` otherwise.

        Returns
        -------
        DataArray
            Interpolated values, with the broadcast dimensions first and the
            query dimensions last. Preserves the original name and attributes.

        Raises
        ------
        DimensionMismatchError
            If a grid dimension is missing, if coordinates do not match the
            grid, or if ``query_dims`` does not match the query shape.
        """
        for dim, axis, units in [
            (x_dim, self.grid.xref, self.grid.x_units),
            (y_dim, self.grid.yref, self.grid.y_units),
        ]:
            if dim not in da.dims:
                raise DimensionMismatchError(
                    f"dimension {dim!r} not found in DataArray. "
                    f"Available dimensions: {list(da.dims)}"
                )
            if dim not in da.coords:
                continue
            coord = da.coords[dim]
            if "units" in coord.attrs and not units.dimensionless:
                values = magnitude_in(xarray_to_quantity(coord), units)
            else:
                values = coord.values
            if values.shape != axis.shape or not np.allclose(values, axis):
                raise DimensionMismatchError(
                    f"coordinate {dim!r} does not match the operator grid axis"
                )

        if query_dims is None:
            n = len(self.query_shape)
            query_dims = ("point",) if n == 1 else tuple(f"point_{k}" for k in range(n))
        query_dims = tuple(query_dims)
        if len(query_dims) != len(self.query_shape):
            raise DimensionMismatchError(
                f"expected {len(self.query_shape)} query dimension names "
                f"(got {query_dims})"
            )

        other_dims = [d for d in da.dims if d not in (x_dim, y_dim)]
        data = da.transpose(*other_dims, x_dim, y_dim).values
        result = self.apply(data)

        out_coords = {
            name: coord
            for name, coord in da.coords.items()
            if all(d in other_dims for d in coord.dims)
        }

        return xr.DataArray(
            result,
            dims=other_dims + list(query_dims),
            coords=out_coords,
            name=da.name,
            attrs=da.attrs,
        )

    @classmethod
    def from_dataarray(
        cls,
        da: xr.DataArray,
        Xq: Any,
        Yq: Any,
        method: Method | str = "linear",
        bc: BoundaryConditions | tuple | None = None,
        x_dim: Hashable = "x",
        y_dim: Hashable = "y",
        order: Literal["C", "F"] = "C",
        error_handling_config: Mapping | ErrorHandlingConfiguration | None = None,
    ) -> InterpolationOperator:
        """
        Build an operator on the grid of a labelled field.

        The grid axes are taken from the ``x_dim`` and ``y_dim`` coordinates
        of ``da``; a ``units`` attribute on a coordinate makes its axis a
        quantity. Other parameters are as in :func:`interp2_operator`.
        """

        def axis(dim):
            if dim not in da.coords:
                raise DimensionMismatchError(
                    f"coordinate {dim!r} not found in DataArray. "
                    f"Available coordinates: {list(da.coords)}"
                )
            coord = da.coords[dim]
            return xarray_to_quantity(coord) if "units" in coord.attrs else coord.values

        return interp2_operator(
            axis(x_dim),
            axis(y_dim),
            Xq,
            Yq,
            method=method,
            bc=bc,
            order=order,
            error_handling_config=error_handling_config,
        )


def interp2_operator(
    X: Any,
    Y: Any,
    Xq: Any,
    Yq: Any,
    method: Method | str = "linear",
    bc: BoundaryConditions | tuple | None = None,
    *,
    order: Literal["C", "F"] = "C",
    error_handling_config: Mapping | ErrorHandlingConfiguration | None = None,
) -> InterpolationOperator:
    """
    Build the sparse operator interpolating grid values at query points.

    See :func:`interp2_matrix` for parameters.

    Returns
    -------
    InterpolationOperator
    """
    method = Method.convert(method)
    bc = BoundaryConditions.convert(bc)
    if bc is not None and method is not Method.CUBIC:
        raise MalformedBoundaryConditionsError(
            f"boundary conditions are only supported by the cubic method "
            f"(got method {method.value!r})"
        )
    if order not in ("C", "F"):
        raise ValueError(f"'order' must be 'C' or 'F' (got {order!r})")

    config = ErrorHandlingConfiguration.convert(error_handling_config)

    grid = normalize_grid(X, Y, config)
    location = locate_queries(grid, Xq, Yq, config)
    logger.debug(
        "building %s operator: %d queries on a %dx%d grid",
        method.value,
        location.size,
        grid.nx,
        grid.ny,
    )

    stencil = compute_stencil(method, location)
    i_stencil, j_stencil = stencil_indices(stencil, location)
    if method is Method.CUBIC:
        i_stencil, j_stencil = resolve_boundaries(
            stencil, i_stencil, j_stencil, location, grid, bc
        )

    matrix = assemble(stencil, i_stencil, j_stencil, grid, order=order)

    return InterpolationOperator(
        matrix=matrix,
        grid=grid,
        method=method,
        query_shape=location.shape,
        out_of_bounds=location.out_of_bounds,
        order=order,
    )


def interp2_matrix(
    X: Any,
    Y: Any,
    Xq: Any,
    Yq: Any,
    method: Method | str = "linear",
    bc: BoundaryConditions | tuple | None = None,
    *,
    order: Literal["C", "F"] = "C",
    full_output: bool = False,
    error_handling_config: Mapping | ErrorHandlingConfiguration | None = None,
):
    """
    Sparse matrix equivalent of 2D grid interpolation.

    Returns the matrix ``M`` such that, for field values ``F`` sampled on the
    reference grid and flattened in operator column order,
    ``M @ F`` interpolates ``F`` at the query points. ``M`` only depends on the
    grid and the query points, so it can be computed once and reused for any
    number of fields.

    Parameters
    ----------
    X, Y : array-like or quantity
        Reference grid: either two axis vectors, or two 2D coordinate
        matrices in ndgrid (``indexing="ij"``) or meshgrid (``indexing="xy"``)
        layout. Meshgrid input is converted to ndgrid layout with a warning;
        fields generated on a meshgrid mesh must be transposed before
        flattening. Axes must be strictly increasing and uniformly spaced.

    Xq, Yq : array-like or quantity
        Query coordinates, of any shape but with equal sizes. Flattened in C
        order: row ``q`` of ``M`` corresponds to the ``q``-th flattened query.

    method : {"linear", "nearest", "cubic"}, default: "linear"
        Interpolation method:

        * ``"nearest"``: nearest node, halfway cases rounded up;
        * ``"linear"``: bilinear interpolation;
        * ``"cubic"``: bicubic convolution. Where the 4x4 stencil leaves the
          grid, the missing nodes are extrapolated with a second-order
          difference, unless boundary conditions are given. Results then
          typically differ from a not-a-knot spline by less than 1%.

    bc : BoundaryConditions or (bc_x, bc_y), optional
        Cubic boundary conditions: grid nodes to use in place of the stencil
        nodes outside each wall. See :class:`.BoundaryConditions`.

    order : {"C", "F"}, default: "C"
        Flattening order of the ndgrid-layout (nx, ny) mesh mapping grid nodes
        to columns of ``M``.

    full_output : bool, default: False
        If ``True``, also return the column coordinates and the out-of-bounds
        row indices.

    error_handling_config : mapping or ErrorHandlingConfiguration, optional
        Error handling configuration. Defaults to the global configuration.

    Returns
    -------
    M : csr_matrix
        Interpolation matrix. Shape (nq, nx * ny). Rows of out-of-bounds
        queries are empty.

    xout, yout : ndarray or quantity
        Coordinates of the grid node of each column of ``M``. Shape
        (nx * ny,). Only returned if ``full_output`` is ``True``.

    out_of_bounds : ndarray
        Indices of the rows of ``M`` corresponding to out-of-bounds queries.
        Only returned if ``full_output`` is ``True``.

    Raises
    ------
    InvalidMethodError
        If ``method`` is not supported.

    MalformedBoundaryConditionsError
        If the boundary conditions are malformed or given with a method other
        than cubic.

    DimensionMismatchError
        If ``Xq`` and ``Yq`` do not have the same size.

    UnsupportedGridLayoutError
        If the grid cannot be reduced to increasing 1D axes, or
        if the method is cubic and an axis has fewer than 3 samples.

    Examples
    --------
    >>> M = interp2_matrix([0.0, 1.0, 2.0], [0.0, 1.0, 2.0], [0.5], [0.5])
    >>> M.toarray()
    array([[0.25, 0.25, 0.  , 0.25, 0.25, 0.  , 0.  , 0.  , 0.  ]])

    Reuse the matrix for several fields:

    >>> X, Y = np.meshgrid([0.0, 1.0, 2.0], [0.0, 1.0, 2.0], indexing="ij")
    >>> M @ (X + Y).ravel(), M @ (X * Y).ravel()
    (array([1.]), array([0.25]))
    """
    operator = interp2_operator(
        X,
        Y,
        Xq,
        Yq,
        method=method,
        bc=bc,
        order=order,
        error_handling_config=error_handling_config,
    )

    if not full_output:
        return operator.matrix

    xout, yout = operator.grid.flat_coordinates(order)
    return operator.matrix, xout, yout, operator.out_of_bounds
