"""
CSRMatrix: a validated CSR triple that can be solved against repeatedly.

Examples
--------
>>> A = CSRMatrix([4.0, 1.0, 1.0, 3.0], [0, 1, 0, 1], [0, 2, 4])
>>> result = A.solve([1.0, 2.0], tol=1e-10)
>>> result.solution  # tensor([0.0909, 0.6364], dtype=torch.float64)
>>> y = A @ result.solution
"""

import torch

from .check import check_csr, check_vector
from .convert import as_index, as_values, csr2dense, dense2csr
from .linear_solve import DEFAULT_MAXITER, DEFAULT_TOL, SolveResult, solve_pcg
from .preconditioner import extract_diagonal
from .spmv import spmv_csr


class CSRMatrix:
    """
    Square sparse matrix in CSR format.

    Values are stored as float64 and indices as int64 on the device of
    ``values``. The structure is checked once at construction; symmetry and
    positive definiteness are not.

    Parameters
    ----------
    values : Tensor or array_like
        [nnz] non-zero values
    col_indices : Tensor or array_like
        [nnz] column index per value
    row_ptr : Tensor or array_like
        [n+1] row offsets
    """

    def __init__(self, values, col_indices, row_ptr):
        self.values = as_values(values)
        self.col_indices = as_index(col_indices, device=self.values.device)
        self.row_ptr = as_index(row_ptr, device=self.values.device)
        check_csr(self.values, self.row_ptr, self.col_indices, self.n)

    @classmethod
    def from_dense(cls, A: torch.Tensor) -> "CSRMatrix":
        """Build from a dense square matrix, keeping its non-zero entries."""
        val, rowptr, col = dense2csr(as_values(A))
        return cls(val, col, rowptr)

    @classmethod
    def from_scipy(cls, A) -> "CSRMatrix":
        """Build from any scipy.sparse matrix (converted to CSR)."""
        A = A.tocsr()
        if A.shape[0] != A.shape[1]:
            raise ValueError(f"matrix must be square, got shape {A.shape}")
        return cls(A.data, A.indices, A.indptr)

    @property
    def n(self) -> int:
        return self.row_ptr.shape[0] - 1

    @property
    def shape(self):
        return (self.n, self.n)

    @property
    def nnz(self) -> int:
        return self.values.shape[0]

    @property
    def dtype(self) -> torch.dtype:
        return self.values.dtype

    @property
    def device(self) -> torch.device:
        return self.values.device

    def to_dense(self) -> torch.Tensor:
        return csr2dense(self.values, self.row_ptr, self.col_indices, self.n)

    def to_scipy(self):
        """Convert to scipy.sparse.csr_matrix (requires scipy)."""
        from .backends.scipy_backend import torch_csr_to_scipy
        return torch_csr_to_scipy(self.values, self.row_ptr, self.col_indices)

    def matvec(self, x) -> torch.Tensor:
        x = as_values(x, device=self.device)
        check_vector("x", x, self.n)
        return spmv_csr(self.values, self.row_ptr, self.col_indices, x)

    def __matmul__(self, x) -> torch.Tensor:
        return self.matvec(x)

    def diagonal(self) -> torch.Tensor:
        """Jacobi diagonal, with 1.0 where the stored diagonal is absent or ~0."""
        return extract_diagonal(self.values, self.row_ptr, self.col_indices)

    def residual(self, x, b) -> float:
        """||b - A x||"""
        b = as_values(b, device=self.device)
        check_vector("b", b, self.n)
        return torch.linalg.vector_norm(b - self.matvec(x)).item()

    def solve(
        self,
        b,
        x0=None,
        tol: float = DEFAULT_TOL,
        max_iter: int = DEFAULT_MAXITER,
        backend: str = 'auto',
        callback=None,
    ) -> SolveResult:
        """
        Solve A x = b with Jacobi-preconditioned CG, see ``solve_pcg``.

        The structure was validated at construction, only the vectors are
        checked here.
        """
        b = as_values(b, device=self.device)
        check_vector("b", b, self.n)
        if x0 is not None:
            x0 = as_values(x0, device=self.device)
            check_vector("x0", x0, self.n)
        return solve_pcg(self.values, self.col_indices, self.row_ptr, b, x0,
                         tol=tol, max_iter=max_iter, backend=backend,
                         callback=callback, check=False)

    def __repr__(self) -> str:
        return f"CSRMatrix(shape={self.shape}, nnz={self.nnz}, device={self.device})"
