"""
Query point location.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import attrs
import numpy as np

from .error import (
    DimensionMismatchError,
    ErrorHandlingConfiguration,
    InterpolationError,
    OutOfBoundsWarning,
    handle_error,
)
from .grid import RegularGrid
from .math import NO_BIN, bin_indices
from .units import magnitude_in

logger = logging.getLogger(__name__)


@attrs.frozen
class QueryLocation:
    """
    Location of a batch of query points in a reference grid.

    All arrays share the query axis. Invalid (out-of-bounds) queries carry
    the placeholder lower-left index 0 and local coordinates 0; they must be
    filtered with ``valid`` before use.

    Parameters
    ----------
    i, j : ndarray
        Lower-left (0-based) grid indices along X and Y. Shape (nq,).

    x, y : ndarray
        Cell-relative coordinates, in [0, 1] for valid queries. Shape (nq,).

    valid : ndarray
        ``True`` where the query lies inside the grid. Shape (nq,).

    shape : tuple of int
        Shape of the query arrays before flattening.
    """

    i: np.ndarray = attrs.field(eq=False, repr=False)
    j: np.ndarray = attrs.field(eq=False, repr=False)
    x: np.ndarray = attrs.field(eq=False, repr=False)
    y: np.ndarray = attrs.field(eq=False, repr=False)
    valid: np.ndarray = attrs.field(eq=False, repr=False)
    shape: tuple[int, ...] = attrs.field(converter=tuple)

    @property
    def size(self) -> int:
        """Number of queries."""
        return self.valid.size

    @property
    def out_of_bounds(self) -> np.ndarray:
        """Indices of the out-of-bounds queries. Shape (n_oob,)."""
        return np.flatnonzero(~self.valid)


def locate_queries(
    grid: RegularGrid,
    Xq: Any,
    Yq: Any,
    error_handling_config: Mapping | ErrorHandlingConfiguration | None = None,
) -> QueryLocation:
    """
    Bin query points into the cells of a reference grid.

    Parameters
    ----------
    grid : RegularGrid
        Reference grid.

    Xq, Yq : array-like or quantity
        Query coordinates, of any shape but with equal sizes. Flattened in C
        order. Quantities are converted to the grid axis units.

    error_handling_config : mapping or ErrorHandlingConfiguration, optional
        Error handling configuration. Defaults to the global configuration.
        Its ``bounds`` action applies when queries lie outside the grid.

    Returns
    -------
    QueryLocation

    Raises
    ------
    DimensionMismatchError
        If ``Xq`` and ``Yq`` do not have the same number of elements.

    Examples
    --------
    >>> grid = RegularGrid([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    >>> loc = locate_queries(grid, [0.5, 2.0, -1.0], [1.25, 0.0, 0.0])
    >>> loc.i, loc.j, loc.valid
    (array([0, 1, 0]), array([1, 0, 0]), array([ True,  True, False]))
    >>> loc.x, loc.y
    (array([0.5, 1. , 0. ]), array([0.25, 0.  , 0.  ]))
    """
    config = ErrorHandlingConfiguration.convert(error_handling_config)

    xq_arr = magnitude_in(Xq, grid.x_units)
    yq_arr = magnitude_in(Yq, grid.y_units)

    if xq_arr.size != yq_arr.size:
        raise DimensionMismatchError(
            "query arrays Xq and Yq must have the same number of elements "
            f"(got {xq_arr.size} and {yq_arr.size})"
        )

    shape = xq_arr.shape if xq_arr.shape == yq_arr.shape else (xq_arr.size,)
    xq = xq_arr.ravel()
    yq = yq_arr.ravel()

    i = bin_indices(grid.xref, xq)
    j = bin_indices(grid.yref, yq)
    valid = (i != NO_BIN) & (j != NO_BIN)

    # Placeholder index keeps invalid queries aligned; their weights stay zero
    i = np.where(valid, i, 0)
    j = np.where(valid, j, 0)

    x = np.where(valid, (xq - grid.xref[i]) / grid.dx, 0.0)
    y = np.where(valid, (yq - grid.yref[j]) / grid.dy, 0.0)

    n_oob = int(np.count_nonzero(~valid))
    logger.debug("located %d queries, %d out of bounds", valid.size, n_oob)
    if n_oob:
        handle_error(
            InterpolationError(
                f"{n_oob} of {valid.size} query points lie outside the reference "
                f"grid [{grid.xref[0]:g}, {grid.xref[-1]:g}] x "
                f"[{grid.yref[0]:g}, {grid.yref[-1]:g}]; their operator rows are "
                "left empty"
            ),
            config.bounds,
            OutOfBoundsWarning,
        )

    return QueryLocation(i=i, j=j, x=x, y=y, valid=valid, shape=shape)
