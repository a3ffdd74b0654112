"""
Cubic stencil boundary treatment.

A 4x4 cubic convolution stencil reaches one node past its cell on each side.
For queries in the first or last cell along an axis, one line of the stencil
therefore falls outside the grid. Each of the four walls is handled with one
of two policies:

* extrapolation (default): the missing node value is approximated from the
  three nearest nodes with a second-order one-sided difference, so that its
  weight can be folded into theirs;
* redirection: the missing nodes are mapped to grid nodes given by the caller
  in boundary condition tables (*e.g.* for periodic or mirrored boundaries).
"""

from __future__ import annotations

import enum
import logging

import attrs
import numpy as np

from .error import MalformedBoundaryConditionsError, UnsupportedGridLayoutError
from .grid import RegularGrid
from .locate import QueryLocation
from .stencil import Method, Stencil

logger = logging.getLogger(__name__)

#: Weights of the three nodes nearest to a missing node in its extrapolated
#: value, farthest node first: f(n+1) ~ 0.5 f(n-2) - 2 f(n-1) + 2.5 f(n)
EXTRAPOLATION_COEFFICIENTS = np.array([0.5, -2.0, 2.5])


class Wall(enum.Enum):
    """
    Grid wall descriptors. Members are listed in the order corrections are
    applied.
    """

    TOP = "top"  #: Upper Y boundary.
    BOTTOM = "bottom"  #: Lower Y boundary.
    LEFT = "left"  #: Lower X boundary.
    RIGHT = "right"  #: Upper X boundary.

    @property
    def normal_axis(self) -> str:
        """Axis across which the stencil leaves the grid."""
        return "y" if self in (Wall.TOP, Wall.BOTTOM) else "x"

    @property
    def is_upper(self) -> bool:
        return self in (Wall.TOP, Wall.RIGHT)

    @property
    def columns(self) -> tuple[int, int]:
        """Columns (i, j) of the wall in its boundary condition table."""
        return (0, 1) if self in (Wall.TOP, Wall.LEFT) else (2, 3)


class WallPolicy(enum.Enum):
    """
    Wall treatment descriptors.
    """

    EXTRAPOLATE = "extrapolate"  #: Fold the missing node into its neighbours.
    REDIRECT = "redirect"  #: Map the missing node to a caller-given node.


def _table_converter(name: str):
    def converter(value) -> np.ndarray:
        table = np.asarray(value)

        if table.ndim != 2 or table.shape[1] != 4:
            raise MalformedBoundaryConditionsError(
                f"boundary condition table {name!r} must be a 2D array with 4 "
                f"columns (got shape {table.shape})"
            )

        if np.issubdtype(table.dtype, np.integer):
            return table.astype(np.int64)

        if (
            np.issubdtype(table.dtype, np.floating)
            and np.all(np.isfinite(table))
            and np.all(table == np.round(table))
        ):
            return table.astype(np.int64)

        raise MalformedBoundaryConditionsError(
            f"boundary condition table {name!r} must hold integer indices"
        )

    return converter


@attrs.frozen
class BoundaryConditions:
    """
    Caller-defined cubic boundary conditions.

    Parameters
    ----------
    bc_x : array-like
        Table for the top and bottom walls, with columns
        ``[i_top, j_top, i_bottom, j_bottom]``. Shape (nx + 2, 4).

    bc_y : array-like
        Table for the left and right walls, with columns
        ``[i_left, j_left, i_right, j_right]``. Shape (ny + 2, 4).

    Notes
    -----
    * Entries are 1-based grid indices: 0 means "unset". A wall whose two
      columns are all zero is inactive and falls back to extrapolation.
    * Row ``r`` of ``bc_x`` gives the node that replaces the out-of-grid
      stencil node located at (0-based) X index ``r - 1``: rows 0 and
      ``nx + 1`` serve the stencil nodes that overhang the grid corners.
      ``bc_y`` is indexed likewise by the Y index.
    """

    bc_x: np.ndarray = attrs.field(converter=_table_converter("bc_x"), eq=False)
    bc_y: np.ndarray = attrs.field(converter=_table_converter("bc_y"), eq=False)

    @classmethod
    def convert(cls, value):
        """
        Convert a value to a :class:`.BoundaryConditions`.

        Parameters
        ----------
        value
            Value to convert. Can be:

            * a :class:`.BoundaryConditions` instance (returned as-is);
            * ``None`` (returned as-is: no boundary conditions);
            * a 2-sequence ``(bc_x, bc_y)``.

        Returns
        -------
        BoundaryConditions or None

        Raises
        ------
        MalformedBoundaryConditionsError
            If only one of the tables is given or the value cannot be
            converted.
        """
        if value is None or isinstance(value, cls):
            return value

        if isinstance(value, (tuple, list)) and len(value) == 2:
            bc_x, bc_y = value
            if bc_x is None or bc_y is None:
                raise MalformedBoundaryConditionsError(
                    "boundary conditions must be given for both axes"
                )
            return cls(bc_x, bc_y)

        raise MalformedBoundaryConditionsError(
            "boundary conditions must be a (bc_x, bc_y) pair "
            f"(got {type(value).__name__})"
        )

    def table(self, wall: Wall) -> np.ndarray:
        """
        Return the (i, j) columns of a wall. Shape (n + 2, 2).
        """
        table = self.bc_x if wall.normal_axis == "y" else self.bc_y
        return table[:, list(wall.columns)]

    def is_active(self, wall: Wall) -> bool:
        """``True`` if the table holds at least one nonzero entry for ``wall``."""
        return bool(np.any(self.table(wall) != 0))

    def validate(self, grid: RegularGrid) -> None:
        """
        Check the tables against a reference grid.

        Raises
        ------
        MalformedBoundaryConditionsError
            If a table does not have one row per node along its wall plus
            two, or if an active wall holds indices outside the grid.
        """
        for name, table, n in [
            ("bc_x", self.bc_x, grid.nx),
            ("bc_y", self.bc_y, grid.ny),
        ]:
            if table.shape[0] != n + 2:
                raise MalformedBoundaryConditionsError(
                    f"boundary condition table {name!r} must have {n + 2} rows "
                    f"(got {table.shape[0]})"
                )

        for wall in Wall:
            if not self.is_active(wall):
                continue
            table = self.table(wall)
            if table.min() < 1:
                raise MalformedBoundaryConditionsError(
                    f"{wall.value} wall boundary conditions contain zero or "
                    "negative indices"
                )
            if table[:, 0].max() > grid.nx or table[:, 1].max() > grid.ny:
                raise MalformedBoundaryConditionsError(
                    f"{wall.value} wall boundary conditions contain indices "
                    f"beyond the grid size {grid.shape}"
                )


def wall_queries(location: QueryLocation, grid: RegularGrid) -> dict[Wall, np.ndarray]:
    """
    Find the valid queries whose cubic stencil crosses each wall.

    Returns
    -------
    dict
        Mapping from each :class:`.Wall` to the indices of the queries
        touching it.
    """
    valid = location.valid
    return {
        Wall.TOP: np.flatnonzero(valid & (location.j == grid.ny - 2)),
        Wall.BOTTOM: np.flatnonzero(valid & (location.j == 0)),
        Wall.LEFT: np.flatnonzero(valid & (location.i == 0)),
        Wall.RIGHT: np.flatnonzero(valid & (location.i == grid.nx - 2)),
    }


def resolve_wall_policies(
    boundary_conditions: BoundaryConditions | None,
    queries: dict[Wall, np.ndarray],
) -> dict[Wall, WallPolicy]:
    """
    Decide how each wall is treated.

    A wall is redirected if its boundary condition table is active and at
    least one query touches it; it is extrapolated otherwise.

    Parameters
    ----------
    boundary_conditions : BoundaryConditions or None
        Caller-defined boundary conditions.

    queries : dict
        Queries touching each wall, as returned by :func:`wall_queries`.

    Returns
    -------
    dict
        Mapping from each :class:`.Wall` to its :class:`.WallPolicy`.
    """
    policies = {}
    for wall in Wall:
        if (
            boundary_conditions is not None
            and boundary_conditions.is_active(wall)
            and queries[wall].size > 0
        ):
            policies[wall] = WallPolicy.REDIRECT
        else:
            policies[wall] = WallPolicy.EXTRAPOLATE

    logger.debug(
        "wall policies: %s",
        ", ".join(f"{wall.value}={policy.value}" for wall, policy in policies.items()),
    )
    return policies


def extrapolate_wall(stencil: Stencil, wall: Wall, queries: np.ndarray) -> None:
    """
    Fold the out-of-grid line of cubic stencils into the three nodes next to it.

    The stencil weights are modified in place. Each row keeps its sum.

    Parameters
    ----------
    stencil : Stencil
        Cubic stencil.

    wall : Wall
        Wall crossed by the stencils.

    queries : ndarray
        Indices of the queries to correct.
    """
    if queries.size == 0:
        return

    # Arrange as [query, normal slot, tangential slot]
    block = stencil.weights[queries]
    if wall.normal_axis == "x":
        block = block.swapaxes(1, 2)

    coefficients = EXTRAPOLATION_COEFFICIENTS[None, :, None]
    if wall.is_upper:
        missing = block[:, 3:4, :].copy()
        block[:, 0:3, :] += coefficients * missing
        block[:, 3, :] = 0.0
    else:
        missing = block[:, 0:1, :].copy()
        block[:, 1:4, :] += coefficients[:, ::-1, :] * missing
        block[:, 0, :] = 0.0

    if wall.normal_axis == "x":
        block = block.swapaxes(1, 2)
    stencil.weights[queries] = block


def wall_slots(wall: Wall) -> np.ndarray:
    """
    Flattened cubic stencil slots lying past ``wall``.

    Examples
    --------
    >>> wall_slots(Wall.BOTTOM), wall_slots(Wall.RIGHT)
    (array([0, 1, 2, 3]), array([ 3,  7, 11, 15]))
    """
    width = Method.CUBIC.width
    slot = 3 if wall.is_upper else 0
    k = np.arange(width * width)
    if wall.normal_axis == "y":
        return k[k // width == slot]
    return k[k % width == slot]


def redirect_wall(
    i_stencil: np.ndarray,
    j_stencil: np.ndarray,
    i_origin: np.ndarray,
    j_origin: np.ndarray,
    boundary_conditions: BoundaryConditions,
    wall: Wall,
    queries: np.ndarray,
) -> None:
    """
    Map the out-of-grid stencil nodes of a wall to caller-defined nodes.

    ``i_stencil`` and ``j_stencil`` are modified in place.

    Parameters
    ----------
    i_stencil, j_stencil : ndarray
        Global (0-based) node indices of every cubic stencil slot.
        Shape (nq, 16).

    i_origin, j_origin : ndarray
        Node indices before any redirection, used to look up the tables.
        Shape (nq, 16).

    boundary_conditions : BoundaryConditions
        Caller-defined boundary conditions.

    wall : Wall
        Redirected wall.

    queries : ndarray
        Indices of the queries touching ``wall``.
    """
    if queries.size == 0:
        return

    index = np.ix_(queries, wall_slots(wall))
    along = i_origin[index] if wall.normal_axis == "y" else j_origin[index]

    # Row 0 of a table serves the corner ghost node at index -1
    table = boundary_conditions.table(wall)
    i_stencil[index] = table[along + 1, 0] - 1
    j_stencil[index] = table[along + 1, 1] - 1


def resolve_boundaries(
    stencil: Stencil,
    i_stencil: np.ndarray,
    j_stencil: np.ndarray,
    location: QueryLocation,
    grid: RegularGrid,
    boundary_conditions: BoundaryConditions | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Apply the wall treatments to a cubic stencil.

    Walls are processed in :class:`.Wall` order, first extrapolation on the
    weights, then redirection on the indices. When two redirected walls meet
    at a corner, the slot they share takes the mapping of the wall processed
    last (left or right over top or bottom).

    Parameters
    ----------
    stencil : Stencil
        Cubic stencil; its weights are modified in place.

    i_stencil, j_stencil : ndarray
        Global node indices of every stencil slot. Shape (nq, 16).

    location : QueryLocation
        Located queries.

    grid : RegularGrid
        Reference grid.

    boundary_conditions : BoundaryConditions, optional
        Caller-defined boundary conditions. If unset, all walls are
        extrapolated.

    Returns
    -------
    i_stencil, j_stencil : ndarray
        Updated global node indices. Shape (nq, 16).

    Raises
    ------
    UnsupportedGridLayoutError
        If an axis has fewer than 3 nodes: a cubic stencil would then cross
        both walls normal to it.

    MalformedBoundaryConditionsError
        If the boundary conditions do not fit the grid.
    """
    for name, n in [("x", grid.nx), ("y", grid.ny)]:
        if n < 3:
            raise UnsupportedGridLayoutError(
                f"cubic interpolation requires at least 3 samples along axis "
                f"{name!r} (got {n})"
            )

    if boundary_conditions is not None:
        boundary_conditions.validate(grid)

    queries = wall_queries(location, grid)
    policies = resolve_wall_policies(boundary_conditions, queries)

    for wall in Wall:
        if policies[wall] is WallPolicy.EXTRAPOLATE:
            extrapolate_wall(stencil, wall, queries[wall])

    i_out, j_out = i_stencil.copy(), j_stencil.copy()
    for wall in Wall:
        if policies[wall] is WallPolicy.REDIRECT:
            redirect_wall(
                i_out,
                j_out,
                i_stencil,
                j_stencil,
                boundary_conditions,
                wall,
                queries[wall],
            )

    return i_out, j_out
