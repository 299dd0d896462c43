import torch
from typing import Optional, Tuple


def row_range(rowptr:torch.Tensor, i:int)->Tuple[int, int]:
    """ Slice of val/col that belongs to row i

    Parameters
    ----------
    rowptr: torch.Tensor
        [n+1] row offsets
    i: int
        row index

    Returns
    -------
    Tuple[int, int]
        (start, end) such that val[start:end] is row i
    """
    return rowptr[i].item(), rowptr[i+1].item()


def csr_row_indices(rowptr:torch.Tensor)->torch.Tensor:
    """ Expand the row offsets into the owning row of every stored entry

    Parameters
    ----------
    rowptr: torch.Tensor
        [n+1] row offsets

    Returns
    -------
    torch.Tensor
        [nnz] row index of each entry, non-decreasing
    """
    n = rowptr.shape[0] - 1
    counts = rowptr[1:] - rowptr[:-1]
    return torch.repeat_interleave(torch.arange(n, device=rowptr.device), counts)


def spmv_csr(
        val:torch.Tensor,
        rowptr:torch.Tensor,
        col:torch.Tensor,
        x:torch.Tensor,
        out:Optional[torch.Tensor]=None,
        row:Optional[torch.Tensor]=None)->torch.Tensor:
    """ Sparse matrix-vector product y = A @ x with A in CSR format

    Parameters
    ----------
    val : torch.Tensor
        1D [nnz] Values of the matrix
    rowptr : torch.Tensor
        1D [n+1] Row offsets of the matrix
    col : torch.Tensor
        1D [nnz] Column indices of the matrix
    x : torch.Tensor
        1D [n] dense vector
    out : torch.Tensor, optional
        1D [n] buffer receiving the product, allocated if not given
    row : torch.Tensor, optional
        1D [nnz] precomputed ``csr_row_indices(rowptr)``

    Returns
    -------
    torch.Tensor
        1D [n] A @ x
    """
    n = rowptr.shape[0] - 1
    if row is None:
        row = csr_row_indices(rowptr)
    if out is None:
        out = torch.zeros(n, dtype=x.dtype, device=x.device)
    else:
        out.zero_()
    # x[col] raises IndexError for out-of-range columns
    out.index_add_(0, row, val * x[col])
    return out
