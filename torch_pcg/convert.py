import torch
import numpy as np
from typing import Optional, Tuple
from .check import check_csr
from .spmv import csr_row_indices
#################
# input coercion
#################

def as_values(x, device:Optional[torch.device]=None)->torch.Tensor:
    """
    Coerce a tensor, ndarray or sequence to a float64 tensor

    A float64 tensor already on ``device`` is returned as is, without a copy.
    """
    if isinstance(x, torch.Tensor):
        return x.to(dtype=torch.float64, device=device)
    return torch.as_tensor(np.asarray(x, dtype=np.float64), device=device)


def as_index(x, device:Optional[torch.device]=None)->torch.Tensor:
    """
    Coerce a tensor, ndarray or sequence of indices to a long tensor

    Unsigned numpy arrays (e.g. uint32 row offsets) are widened to int64
    before they reach torch.
    """
    if isinstance(x, torch.Tensor):
        return x.to(dtype=torch.long, device=device)
    return torch.as_tensor(np.asarray(x, dtype=np.int64), device=device)

#################
# dense, csr
#################

def dense2csr(dense:torch.Tensor
              )->Tuple[torch.Tensor,
                       torch.Tensor,
                       torch.Tensor]:
    """
    Convert a dense square matrix to CSR format

    Parameters
    ----------
        dense: torch.Tensor
            [n, n] dense matrix
    Returns
    -------
        val: torch.Tensor
            [nnz] non-zero values, row by row with ascending columns
        rowptr: torch.Tensor
            [n+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
    """
    if not (dense.ndim == 2 and dense.shape[0] == dense.shape[1]):
        raise ValueError(f"dense must be a square matrix, got shape {tuple(dense.shape)}")
    n = dense.shape[0]
    row, col = torch.nonzero(dense, as_tuple=True)
    val = dense[row, col]
    rowptr = torch.zeros(n + 1, dtype=torch.long, device=dense.device)
    rowptr[1:] = torch.cumsum(torch.bincount(row, minlength=n), 0)
    return val, rowptr, col


def csr2dense(val:torch.Tensor,
              rowptr:torch.Tensor,
              col:torch.Tensor,
              n:int
              )->torch.Tensor:
    """
    Convert CSR format to a dense matrix, duplicate entries are summed

    Parameters
    ----------
        val: torch.Tensor
            [nnz] values of the sparse matrix
        rowptr: torch.Tensor
            [n+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        n: int
            number of rows and columns
    Returns
    -------
        dense: torch.Tensor
            [n, n] dense matrix
    """
    check_csr(val, rowptr, col, n)
    row = csr_row_indices(rowptr)
    dense = torch.zeros(n, n, dtype=val.dtype, device=val.device)
    dense.index_put_((row, col), val, accumulate=True)
    return dense


def coo2csr(val:torch.Tensor,
            row:torch.Tensor,
            col:torch.Tensor,
            n:int
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor]:
    """
    Convert COO format of a square matrix to CSR format

    Parameters
    ----------
        val: torch.Tensor
            [nnz] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        n: int
            number of rows and columns
    Returns
    -------
        val: torch.Tensor
            [nnz] values sorted by row, then column
        rowptr: torch.Tensor
            [n+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
    """
    if not (val.ndim == 1 and row.shape == val.shape and col.shape == val.shape):
        raise ValueError("val, row and col must be 1D tensors of the same length")
    row = row.long()
    col = col.long()
    arg    = torch.argsort(row * n + col, stable=True)
    row    = row[arg]
    col    = col[arg]
    val    = val[arg]
    rowptr = torch.zeros(n + 1, dtype=torch.long, device=val.device)
    rowptr[1:] = torch.cumsum(torch.bincount(row, minlength=n), 0)
    return val, rowptr, col
