"""
Sparse operator assembly.
"""

from __future__ import annotations

import logging
from typing import Literal

import numpy as np
from scipy.sparse import coo_matrix, csr_matrix

from .grid import RegularGrid
from .locate import QueryLocation
from .stencil import Stencil

logger = logging.getLogger(__name__)


def stencil_indices(
    stencil: Stencil, location: QueryLocation
) -> tuple[np.ndarray, np.ndarray]:
    """
    Global node indices of every stencil slot.

    Indices may lie outside the grid for stencils crossing a wall.

    Returns
    -------
    i_stencil, j_stencil : ndarray
        0-based X and Y node indices. Shape (nq, stencil size).
    """
    i_stencil = location.i[:, None] + stencil.di[None, :]
    j_stencil = location.j[:, None] + stencil.dj[None, :]
    return i_stencil, j_stencil


def assemble(
    stencil: Stencil,
    i_stencil: np.ndarray,
    j_stencil: np.ndarray,
    grid: RegularGrid,
    order: Literal["C", "F"] = "C",
) -> csr_matrix:
    """
    Build the sparse interpolation operator from stencil weights and indices.

    Parameters
    ----------
    stencil : Stencil
        Stencil weights.

    i_stencil, j_stencil : ndarray
        Global node indices of every stencil slot. Shape (nq, stencil size).
        Indices outside the grid are clamped to the nearest wall node: they
        only occur with zero weights.

    grid : RegularGrid
        Reference grid.

    order : {"C", "F"}, default: "C"
        Flattening order of the ndgrid-layout (nx, ny) mesh mapping nodes to
        columns. With ``"C"``, node (i, j) maps to column ``i * ny + j``; with
        ``"F"``, it maps to ``i + nx * j``.

    Returns
    -------
    csr_matrix
        Operator of shape (nq, nx * ny). Weights sharing a row and column
        are summed and zero entries are not stored.
    """
    weights = stencil.flat_weights
    nq, ns = weights.shape

    i_clamped = np.clip(i_stencil, 0, grid.nx - 1)
    j_clamped = np.clip(j_stencil, 0, grid.ny - 1)

    rows = np.repeat(np.arange(nq), ns)
    cols = np.ravel_multi_index(
        (i_clamped.ravel(), j_clamped.ravel()), grid.shape, order=order
    )

    # Conversion to CSR sums duplicate entries
    matrix = coo_matrix((weights.ravel(), (rows, cols)), shape=(nq, grid.size)).tocsr()
    matrix.eliminate_zeros()

    logger.debug("assembled %s operator with %d stored entries", matrix.shape, matrix.nnz)
    return matrix
