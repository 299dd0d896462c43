import torch


class ShapeException(ValueError):
    def __init__(self, name, shape, expected_shape):
        self.name = name
        self.shape = shape
        self.expected_shape = expected_shape
        super().__init__(f"{name} has shape {shape} expected {expected_shape}")


class FormatException(ValueError):
    def __init__(self, name, reason):
        self.name = name
        self.reason = reason
        super().__init__(f"{name} is not a valid CSR array: {reason}")


def check_csr(val:torch.Tensor,
              rowptr:torch.Tensor,
              col:torch.Tensor,
              n:int):
    """
    Check the CSR format of a square matrix

    Parameters
    ----------
    val: torch.Tensor
        [nnz] values of the sparse matrix
    rowptr: torch.Tensor
        [n+1] rowptr of the sparse matrix
    col: torch.Tensor
        [nnz] column indices of the sparse matrix
    n: int
        number of rows (and columns) of the sparse matrix

    Raises
    ------
    ShapeException
        if the arrays have inconsistent lengths
    FormatException
        if rowptr is not a valid offset array or a column index is out of range
    """
    if not n >= 0:
        raise ShapeException("shape", (n, n), "(n,n)")
    if not val.ndim == 1:
        raise ShapeException("val", tuple(val.shape), "[nnz]")
    if not (rowptr.ndim == 1 and rowptr.shape[0] == n+1):
        raise ShapeException("rowptr", tuple(rowptr.shape), f"[{n+1}]")
    if not col.ndim == 1:
        raise ShapeException("col", tuple(col.shape), "[nnz]")
    if not val.shape[0] == col.shape[0]:
        raise ShapeException("val", tuple(val.shape), f"[{col.shape[0]}]")
    if rowptr[0].item() != 0:
        raise FormatException("rowptr", f"rowptr[0] must be 0, got {rowptr[0].item()}")
    if n > 0 and (rowptr[1:] < rowptr[:-1]).any():
        raise FormatException("rowptr", "rowptr must be non-decreasing")
    if rowptr[-1].item() != val.shape[0]:
        raise FormatException("rowptr", f"rowptr[-1] must equal nnz={val.shape[0]}, got {rowptr[-1].item()}")
    if col.numel() > 0 and (col.min().item() < 0 or col.max().item() >= n):
        raise FormatException("col", f"column indices must lie in [0, {n})")


def check_vector(name:str,
                 x:torch.Tensor,
                 n:int):
    """
    Check a dense vector against the matrix dimension

    Parameters
    ----------
    name: str
        name reported in the exception
    x: torch.Tensor
        [n] dense vector
    n: int
        expected length
    """
    if not (x.ndim == 1 and x.shape[0] == n):
        raise ShapeException(name, tuple(x.shape), f"[{n}]")


def check_solve_args(tol:float, max_iter:int):
    """Check the convergence parameters of an iterative solve"""
    if not tol > 0:
        raise ValueError(f"tol must be positive, got {tol}")
    if not max_iter >= 0:
        raise ValueError(f"max_iter must be non-negative, got {max_iter}")
