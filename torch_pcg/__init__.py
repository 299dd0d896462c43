"""
torch-pcg: Jacobi-preconditioned Conjugate Gradient for sparse SPD systems

Solves A x = b for a symmetric positive definite matrix A given as a CSR
triple (values, col_indices, row_ptr), and returns the solution together
with the iteration count, the final residual norm and a status tag.

Backends
--------
- pytorch: index_add based CSR product (CPU & CUDA), always available
- scipy: scipy.sparse CSR product (CPU)

Notes
-----
- A is assumed SPD; this is never checked.
- A missing or (near-)zero diagonal entry is preconditioned with 1.0 instead
  of raising, which hides a singular diagonal.
- Breakdown and non-convergence do not raise; inspect ``result.status`` or
  ``result.residual``.

Usage
-----
>>> from torch_pcg import solve_pcg, CSRMatrix
>>>
>>> # Method 1: Direct function call on a CSR triple
>>> values = [4.0, 1.0, 1.0, 3.0]
>>> col_indices = [0, 1, 0, 1]
>>> row_ptr = [0, 2, 4]
>>> result = solve_pcg(values, col_indices, row_ptr, b=[1.0, 2.0], x0=[0.0, 0.0],
...                    tol=1e-10, max_iter=100)
>>> result.solution, result.iterations, result.residual, result.status
>>>
>>> # Method 2: CSRMatrix class
>>> A = CSRMatrix(values, col_indices, row_ptr)
>>> result = A.solve([1.0, 2.0], backend='pytorch')
>>>
>>> # Smoke test of the numeric path, about 8/11
>>> from torch_pcg import self_test
>>> self_test()
"""

from .linear_solve import (
    solve_pcg,
    self_test,
    SolveResult,
    SolveStatus,
    DEFAULT_TOL,
    DEFAULT_MAXITER,
    BREAKDOWN_EPS,
)

from .csr_matrix import CSRMatrix

from .spmv import (
    spmv_csr,
    csr_row_indices,
    row_range,
)

from .vector import (
    dot,
    norm,
    axpby,
)

from .preconditioner import (
    extract_diagonal,
    apply_jacobi,
    jacobi_preconditioner,
    DIAGONAL_EPS,
)

from .check import (
    check_csr,
    ShapeException,
    FormatException,
)

from .convert import (
    dense2csr,
    coo2csr,
    csr2dense,
)

from .backends import (
    # Backend utilities
    get_available_backends,
    select_backend,
    is_scipy_available,
    BACKENDS,
    BackendType,
)

__version__ = "0.1.0"

__all__ = [
    # Solve
    "solve_pcg",
    "self_test",
    "SolveResult",
    "SolveStatus",
    "DEFAULT_TOL",
    "DEFAULT_MAXITER",
    "BREAKDOWN_EPS",
    # CSRMatrix class
    "CSRMatrix",
    # Primitives
    "spmv_csr",
    "csr_row_indices",
    "row_range",
    "dot",
    "norm",
    "axpby",
    "extract_diagonal",
    "apply_jacobi",
    "jacobi_preconditioner",
    "DIAGONAL_EPS",
    # Validation
    "check_csr",
    "ShapeException",
    "FormatException",
    # Conversion
    "dense2csr",
    "coo2csr",
    "csr2dense",
    # Backend utilities
    "get_available_backends",
    "select_backend",
    "is_scipy_available",
    "BACKENDS",
    "BackendType",
    # Version
    "__version__",
]
