"""
Unit handling components, based on the `Pint <https://github.com/hgrecco/pint>`__
library.

Grid axes and query coordinates may be passed as Pint quantities. Axis units
are recorded on the grid and queries are converted to them before binning.
Quantities are created with
`Pint's application registry <https://pint.readthedocs.io/en/stable/getting/pint-in-your-projects.html#having-a-shared-registry>`__,
so that they mix with those of the calling code.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pint
import xarray as xr


def get_unit_registry() -> pint.UnitRegistry:
    """
    Return the unit registry used to create quantities.
    """
    return pint.get_application_registry()


def split_units(value: Any) -> tuple[np.ndarray, pint.Unit]:
    """
    Separate a coordinate array from its units.

    Parameters
    ----------
    value
        Array-like or :class:`pint.Quantity`.

    Returns
    -------
    magnitude : ndarray
        Magnitude as a float array.

    units : pint.Unit
        Units of ``value``, dimensionless if ``value`` is not a quantity.
    """
    if isinstance(value, pint.Quantity):
        return np.asarray(value.magnitude, dtype=np.float64), value.units
    return np.asarray(value, dtype=np.float64), get_unit_registry().dimensionless


def magnitude_in(value: Any, units: pint.Unit) -> np.ndarray:
    """
    Return the magnitude of ``value`` expressed in ``units``.

    Plain values are assumed to already be expressed in ``units``.

    Raises
    ------
    pint.DimensionalityError
        If ``value`` is a quantity with units incompatible with ``units``.
    """
    if isinstance(value, pint.Quantity):
        value = value.m_as(units)
    return np.asarray(value, dtype=np.float64)


def attach_units(value: np.ndarray, units: pint.Unit) -> np.ndarray | pint.Quantity:
    """
    Wrap ``value`` with ``units`` unless they are dimensionless.
    """
    if units.dimensionless:
        return value
    return value * units


def xarray_to_quantity(da: xr.DataArray) -> pint.Quantity:
    """
    Read a data or coordinate variable as a quantity, using the units string
    stored in its ``units`` attribute.

    Raises
    ------
    ValueError
        If ``da`` has no ``units`` attribute.
    """
    if "units" not in da.attrs:
        raise ValueError(
            f"cannot read units of {da.name!r}: this DataArray has no 'units' "
            "attribute field"
        )
    return get_unit_registry().Quantity(da.values, da.attrs["units"])
