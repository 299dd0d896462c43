"""
Preconditioned Conjugate Gradient for symmetric positive definite CSR systems.

The solver trusts that A is symmetric positive definite; this is never
verified. An indefinite or singular matrix shows up as a breakdown or as a
solve that exhausts ``max_iter``, both reported through ``SolveResult.status``
and a warning rather than an exception.

Rows whose diagonal is missing or (near-)zero are preconditioned with 1.0, see
``torch_pcg.preconditioner``. This masks a singular diagonal instead of
failing.
"""

import enum
import warnings
import torch
from torch import Tensor
from typing import Callable, NamedTuple, Optional

from .backends import get_matvec, select_backend
from .check import check_csr, check_solve_args, check_vector
from .convert import as_index, as_values
from .preconditioner import apply_jacobi, extract_diagonal
from .spmv import csr_row_indices
from .vector import axpby, dot, norm

DEFAULT_TOL = 1e-8
DEFAULT_MAXITER = 10000
# |p^T A p| below this stops the iteration
BREAKDOWN_EPS = 1e-30


class SolveStatus(enum.Enum):
    """Terminal state of a PCG solve."""
    CONVERGED = "converged"
    BROKEN_DOWN = "broken_down"
    EXHAUSTED = "exhausted"


class SolveResult(NamedTuple):
    """Result of a PCG solve, read-only once returned."""
    solution: Tensor
    iterations: int
    residual: float
    status: SolveStatus

    @property
    def converged(self) -> bool:
        return self.status is SolveStatus.CONVERGED


def solve_pcg(
    values,
    col_indices,
    row_ptr,
    b,
    x0=None,
    tol: float = DEFAULT_TOL,
    max_iter: int = DEFAULT_MAXITER,
    backend: str = 'auto',
    callback: Optional[Callable[[int, Tensor, float], None]] = None,
    check: bool = True,
) -> SolveResult:
    """
    Solve A x = b with Jacobi-preconditioned Conjugate Gradient.

    Convergence is reached when ``||b - A x|| < tol * max(||b||, 1)``.

    Parameters
    ----------
    values : Tensor or array_like
        [nnz] non-zero values of A (CSR)
    col_indices : Tensor or array_like
        [nnz] column index of each value
    row_ptr : Tensor or array_like
        [n+1] row offsets into values/col_indices
    b : Tensor or array_like
        [n] right-hand side
    x0 : Tensor or array_like, optional
        [n] initial guess, zeros if not given. Never modified.
    tol : float
        Relative tolerance, must be positive
    max_iter : int
        Maximum number of iterations, non-negative
    backend : str
        'auto', 'pytorch' or 'scipy', see ``torch_pcg.backends``
    callback : callable, optional
        Called as ``callback(iteration, x, residual)`` after every update of x.
        ``x`` is the live work vector and must not be modified.
    check : bool
        Validate the CSR structure and vector lengths before iterating.
        Without it a malformed matrix surfaces as an IndexError at best.

    Returns
    -------
    SolveResult
        solution, executed iteration count, last residual norm and status.
        ``iterations`` is 0 only when x0 already satisfies the tolerance
        (or max_iter is 0).
    """
    val = as_values(values)
    device = val.device
    col = as_index(col_indices, device=device)
    rowptr = as_index(row_ptr, device=device)
    b = as_values(b, device=device)
    n = rowptr.shape[0] - 1

    if check:
        check_csr(val, rowptr, col, n)
        check_vector("b", b, n)
    check_solve_args(tol, max_iter)

    if x0 is None:
        x = torch.zeros(n, dtype=torch.float64, device=device)
    else:
        x = as_values(x0, device=device).clone()
        if check:
            check_vector("x0", x, n)

    backend = select_backend(device, backend)
    row = csr_row_indices(rowptr)
    matvec = get_matvec(backend, val, rowptr, col, row=row)
    diag = extract_diagonal(val, rowptr, col, row=row)

    # r = b - A x
    r = torch.empty_like(b)
    matvec(x, r)
    axpby(1.0, b, -1.0, r)

    threshold = tol * max(norm(b), 1.0)
    rnorm = norm(r)
    if rnorm < threshold:
        return SolveResult(x, 0, rnorm, SolveStatus.CONVERGED)

    z = apply_jacobi(diag, r)
    p = z.clone()
    ap = torch.empty_like(r)
    rz = dot(r, z)

    status = SolveStatus.EXHAUSTED
    iterations = 0
    for i in range(max_iter):
        iterations = i + 1

        matvec(p, ap)
        pap = dot(p, ap)
        if abs(pap) < BREAKDOWN_EPS:
            status = SolveStatus.BROKEN_DOWN
            break
        alpha = rz / pap

        axpby(alpha, p, 1.0, x)
        axpby(-alpha, ap, 1.0, r)

        rnorm = norm(r)
        if callback is not None:
            callback(iterations, x, rnorm)
        if rnorm < threshold:
            status = SolveStatus.CONVERGED
            break

        apply_jacobi(diag, r, out=z)
        rz_new = dot(r, z)
        beta = rz_new / rz
        rz = rz_new

        # p = z + beta * p
        axpby(1.0, z, beta, p)

    if status is SolveStatus.BROKEN_DOWN:
        warnings.warn(f"PCG broke down at iteration {iterations} "
                      f"(p'Ap = {pap:.2e}, residual={rnorm:.2e}); matrix may be singular")
    elif status is SolveStatus.EXHAUSTED:
        warnings.warn(f"PCG did not converge in {max_iter} iterations (residual={rnorm:.2e})")

    return SolveResult(x, iterations, rnorm, status)


def self_test() -> float:
    """
    Solve [[4, 1], [1, 3]] x = [1, 2] from zero and return x[0] + x[1].

    The exact solution is [1/11, 7/11], so a working numeric path returns
    about 0.72727.
    """
    values = [4.0, 1.0, 1.0, 3.0]
    col_indices = [0, 1, 0, 1]
    row_ptr = [0, 2, 4]
    b = [1.0, 2.0]
    x0 = [0.0, 0.0]

    result = solve_pcg(values, col_indices, row_ptr, b, x0, tol=1e-10, max_iter=100)
    return result.solution.sum().item()
