"""
Stencil weight generation.

A stencil holds, for every query, the weights of the grid nodes that take
part in its interpolation, together with the offsets of these nodes relative
to the query's lower-left node. Offsets are shared by all queries; slot ``k``
of a stencil of width ``w`` sits at ``(di[k], dj[k])`` with the X offset
varying fastest.
"""

from __future__ import annotations

import enum

import attrs
import numpy as np

from .error import InvalidMethodError
from .locate import QueryLocation
from .math import cubic_basis, linear_basis, round_half_away


class Method(enum.Enum):
    """
    Interpolation method descriptors.
    """

    NEAREST = "nearest"  #: Nearest neighbour.
    LINEAR = "linear"  #: Bilinear.
    CUBIC = "cubic"  #: Bicubic convolution.

    @classmethod
    def convert(cls, value):
        """
        Convert a (case-insensitive) string to a :class:`.Method`.

        Raises
        ------
        InvalidMethodError
            If ``value`` does not name a supported method.

        Examples
        --------
        >>> Method.convert("Cubic")
        <Method.CUBIC: 'cubic'>
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member

        raise InvalidMethodError(
            f"invalid interpolation method {value!r}; expected one of "
            f"{[m.value for m in cls]}"
        )

    @property
    def offsets(self) -> np.ndarray:
        """1D node offsets relative to the lower-left node."""
        if self is Method.CUBIC:
            return np.array([-1, 0, 1, 2])
        return np.array([0, 1])

    @property
    def width(self) -> int:
        """Number of nodes per axis."""
        return self.offsets.size

    @property
    def size(self) -> int:
        """Number of nodes in the 2D stencil."""
        return self.width**2


@attrs.define
class Stencil:
    """
    Interpolation weights of a batch of queries.

    Parameters
    ----------
    method : Method
        Method used to compute the weights.

    weights : ndarray
        Weights, indexed as ``[query, y_slot, x_slot]``.
        Shape (nq, width, width).

    Notes
    -----
    The weights are mutable so that the boundary resolver can correct them in
    place. The flattened layout (see :attr:`flat_weights`) is
    ``k = x_slot + width * y_slot``.
    """

    method: Method = attrs.field(repr=lambda x: f"<{x.name}>")
    weights: np.ndarray = attrs.field(eq=False, repr=lambda x: f"<{x.shape}>")

    @property
    def width(self) -> int:
        return self.method.width

    @property
    def di(self) -> np.ndarray:
        """X offset of each flattened slot. Shape (size,)."""
        return np.tile(self.method.offsets, self.width)

    @property
    def dj(self) -> np.ndarray:
        """Y offset of each flattened slot. Shape (size,)."""
        return np.repeat(self.method.offsets, self.width)

    @property
    def flat_weights(self) -> np.ndarray:
        """Flattened weights. Shape (nq, size)."""
        return self.weights.reshape(self.weights.shape[0], -1)


def compute_stencil(method: Method | str, location: QueryLocation) -> Stencil:
    """
    Compute the stencil weights of a batch of located queries.

    Weights are only evaluated for valid queries; rows of out-of-bounds
    queries are all zero.

    Parameters
    ----------
    method : Method or str
        Interpolation method:

        * ``"nearest"``: the local coordinates are rounded (halfway cases away
          from zero) and bilinear weights are applied, which puts a unit
          weight on the nearest cell corner;
        * ``"linear"``: bilinear weights on the 4 cell corners;
        * ``"cubic"``: tensor product of the Keys cubic convolution kernel on
          the 4x4 surrounding nodes.

    location : QueryLocation
        Located queries.

    Returns
    -------
    Stencil

    Raises
    ------
    InvalidMethodError
        If ``method`` is not supported.

    Examples
    --------
    >>> from interp2mat.grid import RegularGrid
    >>> from interp2mat.locate import locate_queries
    >>> grid = RegularGrid([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    >>> stencil = compute_stencil("linear", locate_queries(grid, [0.5], [0.25]))
    >>> stencil.flat_weights
    array([[0.375, 0.375, 0.125, 0.125]])
    """
    method = Method.convert(method)
    valid = location.valid
    x = location.x[valid]
    y = location.y[valid]

    if method is Method.NEAREST:
        x = round_half_away(x)
        y = round_half_away(y)

    if method is Method.CUBIC:
        ax, ay = cubic_basis(x), cubic_basis(y)
    else:
        ax, ay = linear_basis(x), linear_basis(y)

    weights = np.zeros((location.size, method.width, method.width))
    weights[valid] = ay[:, :, None] * ax[:, None, :]

    return Stencil(method=method, weights=weights)
