"""
Jacobi (diagonal) preconditioner for CSR matrices.

M = diag(A), so applying M^{-1} is an elementwise division. A diagonal entry
that is missing from the sparsity pattern, or whose magnitude is at most
``DIAGONAL_EPS``, is replaced by 1.0. For those rows the preconditioner acts as
the identity instead of dividing by zero; a singular matrix is therefore not
detected here.
"""

import torch
from torch import Tensor
from typing import Callable, Optional

from .spmv import csr_row_indices

DIAGONAL_EPS = 1e-30


def extract_diagonal(val:Tensor, rowptr:Tensor, col:Tensor,
                     row:Optional[Tensor]=None)->Tensor:
    """
    Extract the diagonal of a CSR matrix with the 1.0 fallback.

    Only the first stored (i, i) entry of each row is used, duplicates are
    ignored.

    Parameters
    ----------
    val, rowptr, col : Tensor
        CSR matrix
    row : Tensor, optional
        precomputed ``csr_row_indices(rowptr)``

    Returns
    -------
    Tensor
        [n] diagonal, never (near-)zero
    """
    n = rowptr.shape[0] - 1
    diag = torch.ones(n, dtype=val.dtype, device=val.device)
    if row is None:
        row = csr_row_indices(rowptr)

    pos = torch.nonzero(col == row).squeeze(1)
    if pos.numel() == 0:
        return diag

    # positions are ascending and CSR rows are contiguous, so the first hit
    # of every row is where the row index changes
    diag_row = row[pos]
    first = torch.ones_like(diag_row, dtype=torch.bool)
    first[1:] = diag_row[1:] != diag_row[:-1]
    pos = pos[first]
    diag_row = diag_row[first]

    d = val[pos]
    diag[diag_row] = torch.where(d.abs() > DIAGONAL_EPS, d, torch.ones_like(d))
    return diag


def apply_jacobi(diag:Tensor, r:Tensor, out:Optional[Tensor]=None)->Tensor:
    """z = M^{-1} r = r / diag"""
    return torch.div(r, diag, out=out)


def jacobi_preconditioner(val:Tensor, rowptr:Tensor, col:Tensor) -> Callable[[Tensor], Tensor]:
    """
    Jacobi (diagonal) preconditioner: M^{-1} = diag(A)^{-1}.

    Cost per application: O(n)
    """
    diag = extract_diagonal(val, rowptr, col)

    def apply(r: Tensor) -> Tensor:
        return apply_jacobi(diag, r)

    return apply
