"""
Numerical kernels.

This module holds the per-query building blocks of the operator: a Numba
``guvectorize`` bin search with histogram semantics and the 1D interpolation
bases from which stencil weights are formed by outer product.
"""

from __future__ import annotations

import numpy as np
from numba import guvectorize

#: Marker for values that do not fall in any bin
NO_BIN = -1


def _make_bin_gufunc():
    """
    Create the Numba gufunc for histogram-style bin search.

    Returns a gufunc with signature ``(n),(m)->(m)``.

    The function is created at module load time to ensure JIT compilation
    happens only once.
    """

    @guvectorize(
        [
            "void(float32[:], float32[:], int64[:])",
            "void(float64[:], float64[:], int64[:])",
        ],
        "(n),(m)->(m)",
        nopython=True,
        cache=True,
    )
    def _bin_gufunc_impl(edges, values, out):
        """
        Low-level gufunc for bin search.

        Parameters
        ----------
        edges : ndarray
            Bin edges, sorted in strictly increasing order.
            Shape (n,).

        values : ndarray
            Values to bin.
            Shape (m,).

        out : ndarray
            Index of the lower edge of the bin holding each value, or -1 if the
            value is NaN or lies outside ``[edges[0], edges[-1]]``.
            Shape (m,).
        """
        n = len(edges)
        m = len(values)

        e_min = edges[0]
        e_max = edges[n - 1]

        for i in range(m):
            v = values[i]

            if np.isnan(v) or v < e_min or v > e_max:
                out[i] = -1
                continue

            # The last bin is closed on the right
            if v == e_max:
                out[i] = n - 2
                continue

            left = 0
            right = n - 1

            while right - left > 1:
                mid = (left + right) // 2
                if edges[mid] <= v:
                    left = mid
                else:
                    right = mid

            out[i] = left

    return _bin_gufunc_impl


# Create gufuncs at module load time
_bin_gufunc = _make_bin_gufunc()


def bin_indices(edges: np.ndarray, values: np.ndarray) -> np.ndarray:
    """
    Find the bin holding each value.

    Bins are half-open intervals ``[edges[k], edges[k+1])`` except the last
    one, which also holds its right edge. This matches the behaviour of
    histogram binning routines.

    Parameters
    ----------
    edges : array-like
        Bin edges, sorted in strictly increasing order. Shape (n,), n >= 2.

    values : array-like
        Values to bin. Shape (m,).

    Returns
    -------
    ndarray
        Lower-edge index of each value's bin, in ``[0, n-2]``, or
        :data:`NO_BIN` for NaN and out-of-range values. Shape (m,), dtype int64.

    Examples
    --------
    >>> bin_indices([0.0, 1.0, 2.0], [-0.5, 0.0, 0.5, 1.0, 2.0, 2.5])
    array([-1,  0,  0,  1,  1, -1])
    """
    edges = np.asarray(edges, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    return _bin_gufunc(edges, values)


def round_half_away(x: np.ndarray) -> np.ndarray:
    """
    Round to the nearest integer, with halfway cases rounded away from zero.

    Unlike :func:`numpy.round` (round half to even), 0.5 rounds to 1.

    Examples
    --------
    >>> round_half_away(np.array([0.25, 0.5, 0.75, -0.5]))
    array([ 0.,  1.,  1., -1.])
    """
    x = np.asarray(x, dtype=np.float64)
    whole = np.trunc(x)
    # x - trunc(x) is exact, unlike x + 0.5 just below a halfway point
    return np.where(np.abs(x - whole) >= 0.5, whole + np.sign(x), whole)


def linear_basis(t: np.ndarray) -> np.ndarray:
    """
    Evaluate the 1D linear basis at local coordinate ``t``.

    Returns
    -------
    ndarray
        Weights of the nodes at offsets 0 and 1. Shape (..., 2).
    """
    t = np.asarray(t, dtype=np.float64)
    return np.stack([1.0 - t, t], axis=-1)


def cubic_basis(t: np.ndarray) -> np.ndarray:
    """
    Evaluate the 1D cubic convolution basis at local coordinate ``t``.

    This is the Keys kernel with parameter a = -1/2, which reproduces
    quadratic polynomials and interpolates the data nodes.

    Parameters
    ----------
    t : array-like
        Position relative to the lower-left node, nominally in [0, 1].

    Returns
    -------
    ndarray
        Weights of the nodes at offsets -1, 0, 1 and 2. Shape (..., 4).

    Examples
    --------
    >>> cubic_basis(0.5)
    array([-0.0625,  0.5625,  0.5625, -0.0625])
    """
    t = np.asarray(t, dtype=np.float64)
    t2 = t * t
    tb = t - 1.0

    return 0.5 * np.stack(
        [
            -tb * tb * t,
            3.0 * t * t2 - 5.0 * t2 + 2.0,
            -3.0 * t * t2 + 4.0 * t2 + t,
            tb * t2,
        ],
        axis=-1,
    )
