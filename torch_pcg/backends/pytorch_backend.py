"""
PyTorch-native backend.

Works on every device torch supports; the row index of each stored entry is
expanded once and reused for every product of a solve.
"""

from torch import Tensor
from typing import Callable, Optional

from ..spmv import csr_row_indices, spmv_csr


def pytorch_matvec(val: Tensor, rowptr: Tensor, col: Tensor,
                   row: Optional[Tensor] = None) -> Callable[[Tensor, Tensor], Tensor]:
    """Sparse product ``out = A @ x`` with cached row indices"""
    if col.numel() > 0 and col.min().item() < 0:
        # torch would wrap negative indices instead of raising
        raise IndexError(f"column index {col.min().item()} is out of bounds for matrix of size {rowptr.shape[0] - 1}")
    if row is None:
        row = csr_row_indices(rowptr)

    def matvec(x: Tensor, out: Tensor) -> Tensor:
        return spmv_csr(val, rowptr, col, x, out=out, row=row)

    return matvec
