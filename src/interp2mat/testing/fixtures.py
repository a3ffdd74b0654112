import numpy as np
import pytest


@pytest.fixture
def error_handler_config():
    """
    Error handler configuration used by tests building operators.

    Notes
    -----
    Diagnostics are raised rather than emitted as warnings so that a test
    fails on any unexpected layout, spacing or bounds issue. Tests exercising
    one of these cases override the corresponding entry.
    """
    return {"meshgrid": "raise", "spacing": "raise", "bounds": "ignore"}


@pytest.fixture
def grid_axes():
    """
    Uniform, non-square reference axes: 9 X nodes on [0, 4] and 7 Y nodes
    on [-1, 2].
    """
    return np.linspace(0.0, 4.0, 9), np.linspace(-1.0, 2.0, 7)


@pytest.fixture
def smooth_field(grid_axes):
    """
    Callable smooth test function and its samples on ``grid_axes`` in ndgrid
    layout.
    """

    def f(x, y):
        return np.sin(x) * np.cos(y) + 0.5 * x * y

    xref, yref = grid_axes
    X, Y = np.meshgrid(xref, yref, indexing="ij")
    return f, f(X, Y)


@pytest.fixture
def interior_queries(grid_axes):
    """
    Random query points whose cubic stencils stay away from the grid walls.
    """
    xref, yref = grid_axes
    rng = np.random.default_rng(seed=42)
    xq = rng.uniform(xref[1], xref[-2], 200)
    yq = rng.uniform(yref[1], yref[-2], 200)
    # Exclude points falling in the first or last cell
    keep = (xq < xref[-2]) & (yq < yref[-2])
    return xq[keep], yq[keep]


@pytest.fixture
def random_queries(grid_axes):
    """
    Random query points covering the grid and a margin around it.
    """
    xref, yref = grid_axes
    rng = np.random.default_rng(seed=1)
    xq = rng.uniform(xref[0] - 0.5, xref[-1] + 0.5, 300)
    yq = rng.uniform(yref[0] - 0.5, yref[-1] + 0.5, 300)
    return xq, yq
