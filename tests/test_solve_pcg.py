"""
Tests for the Jacobi-preconditioned CG solver
"""

import math
import pytest
import torch
import numpy as np
from itertools import product
from scipy.sparse import csr_matrix
from scipy.sparse.linalg import spsolve as sp_spsolve

from torch_pcg import (
    solve_pcg,
    self_test,
    SolveStatus,
    ShapeException,
    FormatException,
    get_available_backends,
)
from torch_pcg.random import spd_csr, tridiagonal_csr


DEVICES = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])


def system_2x2():
    """[[4, 1], [1, 3]] x = [1, 2], x = [1/11, 7/11]"""
    values = torch.tensor([4.0, 1.0, 1.0, 3.0], dtype=torch.float64)
    col = torch.tensor([0, 1, 0, 1])
    rowptr = torch.tensor([0, 2, 4])
    b = torch.tensor([1.0, 2.0], dtype=torch.float64)
    return values, col, rowptr, b


def system_3x3():
    """[[4, 1, 1], [1, 4, 1], [1, 1, 4]] x = [6, 6, 6], x = [1, 1, 1]"""
    values = torch.tensor([4.0, 1.0, 1.0, 1.0, 4.0, 1.0, 1.0, 1.0, 4.0], dtype=torch.float64)
    col = torch.tensor([0, 1, 2, 0, 1, 2, 0, 1, 2])
    rowptr = torch.tensor([0, 3, 6, 9])
    b = torch.tensor([6.0, 6.0, 6.0], dtype=torch.float64)
    return values, col, rowptr, b


def identity(n: int):
    values = torch.ones(n, dtype=torch.float64)
    col = torch.arange(n)
    rowptr = torch.arange(n + 1)
    return values, col, rowptr


def true_residual(values, col, rowptr, x, b):
    n = rowptr.shape[0] - 1
    A = csr_matrix((values.numpy(), col.numpy(), rowptr.numpy()), shape=(n, n))
    return np.linalg.norm(b.numpy() - A @ x.cpu().numpy())


# ============================================================================
# Known systems
# ============================================================================

@pytest.mark.parametrize('backend', get_available_backends())
def test_2x2(backend):
    values, col, rowptr, b = system_2x2()
    x0 = torch.zeros(2, dtype=torch.float64)

    result = solve_pcg(values, col, rowptr, b, x0, tol=1e-10, max_iter=100, backend=backend)

    expected = torch.tensor([1.0 / 11.0, 7.0 / 11.0], dtype=torch.float64)
    torch.testing.assert_close(result.solution, expected, rtol=0, atol=1e-8)
    assert result.residual < 1e-8
    assert result.status is SolveStatus.CONVERGED
    assert result.converged
    assert 1 <= result.iterations <= 2


@pytest.mark.parametrize('backend', get_available_backends())
def test_3x3(backend):
    values, col, rowptr, b = system_3x3()
    x0 = torch.zeros(3, dtype=torch.float64)

    result = solve_pcg(values, col, rowptr, b, x0, tol=1e-10, max_iter=100, backend=backend)

    torch.testing.assert_close(result.solution, torch.ones(3, dtype=torch.float64), rtol=0, atol=1e-8)
    assert result.converged


@pytest.mark.parametrize(['n', 'device'], product([1, 3, 10], DEVICES))
def test_identity(n, device):
    values, col, rowptr = identity(n)
    b = torch.arange(1, n + 1, dtype=torch.float64)

    result = solve_pcg(values.to(device), col.to(device), rowptr.to(device), b.to(device),
                       tol=1e-10, max_iter=1)

    torch.testing.assert_close(result.solution.cpu(), b)
    assert result.iterations == 1
    assert result.converged


def test_self_test():
    assert math.isclose(self_test(), 8.0 / 11.0, abs_tol=1e-8)


# ============================================================================
# Random SPD systems against SciPy
# ============================================================================

@pytest.mark.parametrize(
    ['n', 'backend'],
    product([16, 64, 128], get_available_backends())
    )
def test_random_spd(n, backend):
    values, col, rowptr = spd_csr(n, density=0.1, seed=n)
    b = torch.randn(n, dtype=torch.float64, generator=torch.Generator().manual_seed(0))

    result = solve_pcg(values, col, rowptr, b, tol=1e-12, max_iter=10 * n, backend=backend)

    A_scipy = csr_matrix((values.numpy(), col.numpy(), rowptr.numpy()), shape=(n, n))
    x_ref = torch.from_numpy(sp_spsolve(A_scipy.tocsc(), b.numpy()))
    torch.testing.assert_close(result.solution, x_ref, rtol=1e-8, atol=1e-8)
    assert result.converged
    assert result.iterations <= n


@pytest.mark.parametrize('n', [8, 32, 100])
def test_residual_below_threshold(n):
    values, col, rowptr = spd_csr(n, density=0.2, seed=1)
    b = torch.rand(n, dtype=torch.float64, generator=torch.Generator().manual_seed(1))
    tol = 1e-8

    result = solve_pcg(values, col, rowptr, b, tol=tol, max_iter=1000)

    threshold = tol * max(torch.linalg.vector_norm(b).item(), 1.0)
    assert result.residual < threshold
    assert true_residual(values, col, rowptr, result.solution, b) <= threshold


def test_backends_agree():
    if 'scipy' not in get_available_backends():
        pytest.skip("scipy backend not available")
    values, col, rowptr = tridiagonal_csr(200)
    b = torch.ones(200, dtype=torch.float64)

    r1 = solve_pcg(values, col, rowptr, b, tol=1e-12, backend='pytorch')
    r2 = solve_pcg(values, col, rowptr, b, tol=1e-12, backend='scipy')

    torch.testing.assert_close(r1.solution, r2.solution, rtol=1e-10, atol=1e-10)
    assert abs(r1.iterations - r2.iterations) <= 1


# ============================================================================
# Early exit and idempotence
# ============================================================================

def test_early_exit_returns_x0():
    values, col, rowptr = identity(3)
    b = torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)
    x0 = b.clone()

    result = solve_pcg(values, col, rowptr, b, x0, tol=1e-10, max_iter=100)

    assert result.iterations == 0
    assert result.residual == 0.0
    assert torch.equal(result.solution, x0)
    assert result.converged


def test_resolve_from_solution_is_idempotent():
    values, col, rowptr, b = system_2x2()

    first = solve_pcg(values, col, rowptr, b, tol=1e-10, max_iter=100)
    second = solve_pcg(values, col, rowptr, b, first.solution, tol=1e-10, max_iter=100)

    assert first.iterations > 0
    assert second.iterations == 0
    assert torch.equal(second.solution, first.solution)


def test_x0_not_modified():
    values, col, rowptr, b = system_3x3()
    x0 = torch.tensor([0.5, -0.5, 2.0], dtype=torch.float64)
    x0_copy = x0.clone()

    result = solve_pcg(values, col, rowptr, b, x0, tol=1e-10, max_iter=100)

    assert torch.equal(x0, x0_copy)
    assert result.solution.data_ptr() != x0.data_ptr()


def test_small_rhs_uses_unit_floor():
    # ||b|| << 1, threshold is tol * 1.0, so x0 = 0 already passes
    values, col, rowptr, _ = system_2x2()
    b = torch.tensor([1e-12, 0.0], dtype=torch.float64)

    result = solve_pcg(values, col, rowptr, b, tol=1e-8, max_iter=100)

    assert result.iterations == 0
    assert result.residual == pytest.approx(1e-12)


# ============================================================================
# Termination: iteration cap, breakdown, NaN
# ============================================================================

@pytest.mark.filterwarnings("ignore:PCG")
@pytest.mark.parametrize('max_iter', [1, 2, 5, 20])
def test_iterations_never_exceed_max_iter(max_iter):
    values, col, rowptr = spd_csr(40, density=0.2, seed=3)
    b = torch.ones(40, dtype=torch.float64)

    result = solve_pcg(values, col, rowptr, b, tol=1e-14, max_iter=max_iter)

    assert 1 <= result.iterations <= max_iter


def test_exhausted():
    values, col, rowptr = tridiagonal_csr(50)
    b = torch.ones(50, dtype=torch.float64)

    with pytest.warns(UserWarning, match="did not converge"):
        result = solve_pcg(values, col, rowptr, b, tol=1e-12, max_iter=3)

    assert result.iterations == 3
    assert result.status is SolveStatus.EXHAUSTED
    assert not result.converged
    assert result.residual >= 1e-12 * math.sqrt(50)


def test_zero_max_iter():
    values, col, rowptr, b = system_2x2()

    with pytest.warns(UserWarning, match="did not converge"):
        result = solve_pcg(values, col, rowptr, b, tol=1e-10, max_iter=0)

    assert result.iterations == 0
    assert result.status is SolveStatus.EXHAUSTED
    assert result.residual == pytest.approx(math.sqrt(5.0))
    assert torch.equal(result.solution, torch.zeros(2, dtype=torch.float64))


@pytest.mark.parametrize('backend', get_available_backends())
def test_breakdown_on_zero_matrix(backend):
    # explicit zero diagonal: preconditioner falls back to 1.0, A p = 0
    values = torch.tensor([0.0, 0.0], dtype=torch.float64)
    col = torch.tensor([0, 1])
    rowptr = torch.tensor([0, 1, 2])
    b = torch.tensor([1.0, 1.0], dtype=torch.float64)

    with pytest.warns(UserWarning, match="broke down"):
        result = solve_pcg(values, col, rowptr, b, tol=1e-10, max_iter=100, backend=backend)

    assert result.status is SolveStatus.BROKEN_DOWN
    assert result.iterations == 1
    assert result.residual == pytest.approx(math.sqrt(2.0))
    assert torch.equal(result.solution, torch.zeros(2, dtype=torch.float64))


def test_breakdown_on_empty_rows():
    values = torch.zeros(0, dtype=torch.float64)
    col = torch.zeros(0, dtype=torch.long)
    rowptr = torch.tensor([0, 0, 0])
    b = torch.tensor([3.0, 4.0], dtype=torch.float64)

    with pytest.warns(UserWarning, match="broke down"):
        result = solve_pcg(values, col, rowptr, b, tol=1e-10, max_iter=10)

    assert result.status is SolveStatus.BROKEN_DOWN
    assert result.residual == pytest.approx(5.0)


def test_nan_runs_to_max_iter():
    values, col, rowptr, _ = system_2x2()
    b = torch.tensor([float('nan'), 1.0], dtype=torch.float64)

    with pytest.warns(UserWarning, match="did not converge"):
        result = solve_pcg(values, col, rowptr, b, tol=1e-10, max_iter=7)

    assert result.iterations == 7
    assert math.isnan(result.residual)
    assert result.status is SolveStatus.EXHAUSTED


def test_callback():
    values, col, rowptr = tridiagonal_csr(30)
    b = torch.ones(30, dtype=torch.float64)
    history = []

    result = solve_pcg(values, col, rowptr, b, tol=1e-10,
                       callback=lambda i, x, rnorm: history.append((i, rnorm)))

    assert [i for i, _ in history] == list(range(1, result.iterations + 1))
    assert history[-1][1] == result.residual


# ============================================================================
# Inputs and validation
# ============================================================================

def test_numpy_and_list_inputs():
    values = np.array([4.0, 1.0, 1.0, 3.0])
    col = np.array([0, 1, 0, 1], dtype=np.uint32)
    rowptr = np.array([0, 2, 4], dtype=np.uint32)

    r1 = solve_pcg(values, col, rowptr, np.array([1.0, 2.0]), np.zeros(2), tol=1e-10, max_iter=100)
    r2 = solve_pcg(values.tolist(), col.tolist(), rowptr.tolist(), [1.0, 2.0], tol=1e-10, max_iter=100)

    assert r1.solution.dtype == torch.float64
    torch.testing.assert_close(r1.solution, r2.solution)


def test_float32_values_are_promoted():
    values, col, rowptr, b = system_2x2()

    result = solve_pcg(values.float(), col.int(), rowptr.int(), b.float(), tol=1e-10, max_iter=100)

    assert result.solution.dtype == torch.float64
    torch.testing.assert_close(result.solution,
                               torch.tensor([1.0 / 11.0, 7.0 / 11.0], dtype=torch.float64),
                               rtol=0, atol=1e-8)


@pytest.mark.parametrize(
    ['col', 'rowptr', 'exception'],
    [
        ([0, 1, 0, 1], [1, 2, 4], FormatException),    # rowptr[0] != 0
        ([0, 1, 0, 1], [0, 2, 4, 4], ShapeException),  # n = 3 but b has length 2
        ([0, 1, 0, 1], [0, 2, 3], FormatException),    # rowptr[-1] != nnz
        ([0, 2, 0, 1], [0, 2, 4], FormatException),    # column out of range
        ([0, -1, 0, 1], [0, 2, 4], FormatException),   # negative column
        ([0, 1, 0], [0, 2, 4], ShapeException),        # col shorter than values
    ]
)
def test_malformed_csr(col, rowptr, exception):
    values = [4.0, 1.0, 1.0, 3.0]
    with pytest.raises(exception):
        solve_pcg(values, col, rowptr, [1.0, 2.0])


def test_decreasing_rowptr():
    values = [4.0, 1.0, 1.0, 3.0]
    with pytest.raises(FormatException, match="non-decreasing"):
        solve_pcg(values, [0, 1, 0, 1], [0, 3, 2, 4], [1.0, 2.0, 3.0])


def test_vector_length_mismatch():
    values, col, rowptr, b = system_2x2()
    with pytest.raises(ShapeException):
        solve_pcg(values, col, rowptr, torch.ones(3, dtype=torch.float64))
    with pytest.raises(ShapeException):
        solve_pcg(values, col, rowptr, b, torch.zeros(3, dtype=torch.float64))


@pytest.mark.parametrize(['tol', 'max_iter'], [(0.0, 10), (-1e-8, 10), (1e-8, -1)])
def test_invalid_solve_args(tol, max_iter):
    values, col, rowptr, b = system_2x2()
    with pytest.raises(ValueError):
        solve_pcg(values, col, rowptr, b, tol=tol, max_iter=max_iter)


@pytest.mark.parametrize(["backend", "bad_col"], product(get_available_backends() + ["auto"], [5, 2, -1]))
def test_unchecked_out_of_range_column(backend, bad_col):
    values, _, rowptr, b = system_2x2()
    col = torch.tensor([0, bad_col, 0, 1])
    with pytest.raises(IndexError):
        solve_pcg(values, col, rowptr, b, backend=backend, check=False)
