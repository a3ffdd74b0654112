"""
Tests for interp2mat.grid module.
"""

import warnings

import numpy as np
import pytest

from interp2mat.error import (
    MeshgridLayoutWarning,
    NonUniformSpacingWarning,
    UnsupportedGridLayoutError,
)
from interp2mat.grid import GridLayout, RegularGrid, detect_layout, normalize_grid
from interp2mat.units import get_unit_registry


class TestDetectLayout:
    """Tests for grid layout detection."""

    def test_vectors(self, grid_axes):
        xref, yref = grid_axes

        layout, x, y = detect_layout(xref, yref)

        assert layout is GridLayout.VECTOR
        np.testing.assert_array_equal(x, xref)
        np.testing.assert_array_equal(y, yref)

    def test_row_and_column_vectors(self, grid_axes):
        """Test that 2D arrays with a singleton dimension are vectors."""
        xref, yref = grid_axes

        layout, x, y = detect_layout(xref.reshape(-1, 1), yref.reshape(1, -1))

        assert layout is GridLayout.VECTOR
        np.testing.assert_array_equal(x, xref)
        np.testing.assert_array_equal(y, yref)

    def test_ndgrid(self, grid_axes):
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="ij")

        layout, x, y = detect_layout(X, Y)

        assert layout is GridLayout.NDGRID
        np.testing.assert_array_equal(x, xref)
        np.testing.assert_array_equal(y, yref)

    def test_meshgrid(self, grid_axes):
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="xy")

        layout, x, y = detect_layout(X, Y)

        assert layout is GridLayout.MESHGRID
        np.testing.assert_array_equal(x, xref)
        np.testing.assert_array_equal(y, yref)

    def test_square_meshgrid(self):
        """Test that square meshes are told apart."""
        axis = np.array([0.0, 1.0, 2.0])
        X, Y = np.meshgrid(axis, 2.0 * axis, indexing="xy")

        layout, x, y = detect_layout(X, Y)

        assert layout is GridLayout.MESHGRID
        np.testing.assert_array_equal(y, 2.0 * axis)

    @pytest.mark.parametrize(
        "X, Y",
        [
            (np.zeros((2, 3, 4)), np.zeros((2, 3, 4))),
            (np.zeros((3, 4)), np.zeros((4, 3))),
            (np.zeros((3, 4)), np.zeros(4)),
        ],
        ids=["3d", "shape_mismatch", "matrix_and_vector"],
    )
    def test_unsupported_shapes(self, X, Y):
        with pytest.raises(UnsupportedGridLayoutError):
            detect_layout(X, Y)

    def test_scrambled_matrices(self, grid_axes):
        """Test matrices which are in neither layout."""
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="ij")
        X[2, 3] = 100.0

        with pytest.raises(UnsupportedGridLayoutError, match="neither"):
            detect_layout(X, Y)


class TestNormalizeGrid:
    """Tests for grid normalization."""

    def test_vectors(self, grid_axes, error_handler_config):
        xref, yref = grid_axes

        grid = normalize_grid(xref, yref, error_handler_config)

        assert grid.layout is GridLayout.VECTOR
        assert grid.shape == (9, 7)
        assert grid.size == 63
        assert grid.dx == 0.5
        assert grid.dy == 0.5

    def test_lists(self, error_handler_config):
        grid = normalize_grid([0, 1, 2], [5, 10], error_handler_config)

        assert grid.xref.dtype == np.float64
        assert grid.shape == (3, 2)
        assert grid.dy == 5.0

    def test_meshgrid_warns(self, grid_axes):
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="xy")

        with pytest.warns(MeshgridLayoutWarning, match="meshgrid layout"):
            grid = normalize_grid(X, Y, {"meshgrid": "warn"})

        assert grid.layout is GridLayout.MESHGRID
        np.testing.assert_array_equal(grid.xref, xref)
        np.testing.assert_array_equal(grid.yref, yref)

    def test_meshgrid_raise(self, grid_axes):
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="xy")

        with pytest.raises(UnsupportedGridLayoutError, match="meshgrid layout"):
            normalize_grid(X, Y, {"meshgrid": "raise"})

    def test_meshgrid_ignore(self, grid_axes):
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="xy")

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            grid = normalize_grid(X, Y, {"meshgrid": "ignore"})

        assert grid.layout is GridLayout.MESHGRID

    def test_meshgrid_default_warns(self, grid_axes):
        """Test that the default configuration warns on meshgrid layout."""
        xref, yref = grid_axes
        X, Y = np.meshgrid(xref, yref, indexing="xy")

        with pytest.warns(MeshgridLayoutWarning):
            normalize_grid(X, Y)

    @pytest.mark.parametrize(
        "xref, match",
        [
            ([0.0], "at least 2 samples"),
            ([0.0, np.nan, 2.0], "non-finite"),
            ([0.0, 2.0, 1.0], "not strictly increasing"),
            ([2.0, 1.0, 0.0], "not strictly increasing"),
            ([0.0, 0.0, 1.0], "not strictly increasing"),
        ],
    )
    def test_invalid_axes(self, xref, match, error_handler_config):
        with pytest.raises(UnsupportedGridLayoutError, match=match):
            normalize_grid(xref, [0.0, 1.0], error_handler_config)

    def test_nonuniform_spacing_warns(self):
        with pytest.warns(NonUniformSpacingWarning, match="'y'"):
            grid = normalize_grid([0.0, 1.0, 2.0], [0.0, 1.0, 3.0], {"spacing": "warn"})

        # The spacing of the first two samples is used
        assert grid.dy == 1.0

    def test_nonuniform_spacing_raise(self):
        with pytest.raises(UnsupportedGridLayoutError, match="uniformly spaced"):
            normalize_grid([0.0, 1.0, 2.5], [0.0, 1.0], {"spacing": "raise"})

    def test_linspace_spacing_accepted(self, error_handler_config):
        """Test that rounding errors of np.linspace do not trigger diagnostics."""
        normalize_grid(
            np.linspace(0.1, 0.7, 37), np.linspace(-3.3, 9.1, 101), error_handler_config
        )

    def test_units(self, error_handler_config):
        ureg = get_unit_registry()

        grid = normalize_grid(
            np.array([0.0, 1.0, 2.0]) * ureg.km,
            np.array([0.0, 10.0]) * ureg.s,
            error_handler_config,
        )

        assert grid.x_units == ureg.km
        assert grid.y_units == ureg.s
        assert grid.dx == 1.0


class TestRegularGrid:
    """Tests for the RegularGrid class."""

    def test_flat_coordinates(self):
        grid = RegularGrid([0.0, 1.0, 2.0], [10.0, 20.0])

        xout, yout = grid.flat_coordinates()

        np.testing.assert_array_equal(xout, [0.0, 0.0, 1.0, 1.0, 2.0, 2.0])
        np.testing.assert_array_equal(yout, [10.0, 20.0, 10.0, 20.0, 10.0, 20.0])

    def test_flat_coordinates_fortran_order(self):
        grid = RegularGrid([0.0, 1.0, 2.0], [10.0, 20.0])

        xout, yout = grid.flat_coordinates(order="F")

        np.testing.assert_array_equal(xout, [0.0, 1.0, 2.0, 0.0, 1.0, 2.0])
        np.testing.assert_array_equal(yout, [10.0, 10.0, 10.0, 20.0, 20.0, 20.0])

    def test_flat_coordinates_units(self):
        ureg = get_unit_registry()
        grid = RegularGrid([0.0, 1.0], [0.0, 1.0], x_units=ureg.m)

        xout, yout = grid.flat_coordinates()

        assert xout.units == ureg.m
        assert not hasattr(yout, "units")

    def test_ndgrid_ravel_matches_flat_coordinates(self, grid_axes):
        """Test that flattened ndgrid meshes line up with the grid columns."""
        xref, yref = grid_axes
        grid = RegularGrid(xref, yref)
        X, Y = np.meshgrid(xref, yref, indexing="ij")

        xout, yout = grid.flat_coordinates()

        np.testing.assert_array_equal(xout, X.ravel())
        np.testing.assert_array_equal(yout, Y.ravel())
