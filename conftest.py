import pytest
import numpy
import xarray
import interp2mat
import interp2mat.interpolation

from interp2mat.testing.fixtures import *  # noqa: F403


@pytest.fixture(autouse=True)
def add_np(doctest_namespace):
    doctest_namespace["np"] = numpy
    doctest_namespace["xr"] = xarray
    doctest_namespace["interp2mat"] = interp2mat
    doctest_namespace["interp2_matrix"] = interp2mat.interpolation.interp2_matrix
    doctest_namespace["interp2_operator"] = interp2mat.interpolation.interp2_operator
    doctest_namespace["ErrorHandlingConfiguration"] = interp2mat.ErrorHandlingConfiguration


@pytest.fixture(autouse=True)
def reset_error_handling_config():
    """Restore the global error handling configuration after each test."""
    config = interp2mat.get_error_handling_config()
    yield
    interp2mat.set_error_handling_config(config)
