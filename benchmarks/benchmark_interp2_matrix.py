"""
Operator construction and reuse benchmark.

This benchmark mimics the intended use case: an operator is built once for a
fixed set of query points, then applied to many fields sampled on the same
grid (e.g. successive time steps of a model output). It is compared to
:class:`scipy.interpolate.RegularGridInterpolator`, which repeats the location
and weight computations for every field.
"""

import numpy as np
import pytest
import xarray as xr
from scipy.interpolate import RegularGridInterpolator

from interp2mat import interp2_matrix, interp2_operator

GRID_SIZES = [(101, 51), (1001, 501)]
N_QUERIES = [1000, 100000]
N_FIELDS = 32


@pytest.fixture(
    scope="module",
    params=[(g, q) for g in GRID_SIZES for q in N_QUERIES],
    ids=[f"{g[0]}x{g[1]}-{q}" for g in GRID_SIZES for q in N_QUERIES],
)
def setup(request):
    rng = np.random.default_rng(seed=42)
    (nx, ny), nq = request.param

    x = np.linspace(0.0, 10.0, nx)
    y = np.linspace(-5.0, 5.0, ny)
    X, Y = np.meshgrid(x, y, indexing="ij")
    phase = rng.uniform(0.0, 2.0 * np.pi, N_FIELDS)
    fields = np.sin(X[None, :, :] + phase[:, None, None]) * np.cos(Y[None, :, :])

    xq = rng.uniform(x[0], x[-1], nq)
    yq = rng.uniform(y[0], y[-1], nq)

    yield {"x": x, "y": y, "fields": fields, "xq": xq, "yq": yq}


class BenchmarkBuild:
    @pytest.mark.parametrize("method", ["nearest", "linear", "cubic"])
    def benchmark_interp2_matrix(self, setup, benchmark, method):
        benchmark(
            interp2_matrix, setup["x"], setup["y"], setup["xq"], setup["yq"], method
        )


class BenchmarkApply:
    def apply_operator(self, operator, fields):
        return operator.apply(fields)

    def benchmark_apply_operator(self, setup, benchmark):
        operator = interp2_operator(
            setup["x"], setup["y"], setup["xq"], setup["yq"], method="linear"
        )
        benchmark(self.apply_operator, operator, setup["fields"])

    def build_and_apply_operator(self, setup):
        operator = interp2_operator(
            setup["x"], setup["y"], setup["xq"], setup["yq"], method="linear"
        )
        return operator.apply(setup["fields"])

    def benchmark_build_and_apply_operator(self, setup, benchmark):
        benchmark(self.build_and_apply_operator, setup)

    def scipy_rgi(self, setup):
        xi = np.column_stack([setup["xq"], setup["yq"]])
        return np.stack(
            [
                RegularGridInterpolator((setup["x"], setup["y"]), field)(xi)
                for field in setup["fields"]
            ]
        )

    def benchmark_scipy_rgi(self, setup, benchmark):
        benchmark(self.scipy_rgi, setup)


class BenchmarkApplyDataArray:
    def benchmark_apply_dataarray(self, setup, benchmark):
        da = xr.DataArray(
            setup["fields"],
            dims=["t", "x", "y"],
            coords={"t": np.arange(N_FIELDS), "x": setup["x"], "y": setup["y"]},
        )
        operator = interp2_operator(
            setup["x"], setup["y"], setup["xq"], setup["yq"], method="linear"
        )
        benchmark(operator.apply_dataarray, da)

    def benchmark_xarray_interp(self, setup, benchmark):
        da = xr.DataArray(
            setup["fields"],
            dims=["t", "x", "y"],
            coords={"t": np.arange(N_FIELDS), "x": setup["x"], "y": setup["y"]},
        )
        xq = xr.DataArray(setup["xq"], dims="point")
        yq = xr.DataArray(setup["yq"], dims="point")
        benchmark(da.interp, x=xq, y=yq)
