"""
SciPy backend for the CPU sparse matrix-vector product.

The CSR triple is handed to scipy.sparse once per solve; every product then
runs in SciPy's compiled csr_matvec and is copied back into the torch buffer.
"""

import torch
import numpy as np
from torch import Tensor
from typing import Callable

from . import is_scipy_available


def torch_csr_to_scipy(
    val: Tensor,
    rowptr: Tensor,
    col: Tensor,
):
    """
    Convert PyTorch CSR tensors to a SciPy CSR matrix.

    SciPy's compiled kernels do not bound-check column indices, so an index
    outside [0, n) raises IndexError here, matching torch indexing.
    """
    if not is_scipy_available():
        raise ImportError("SciPy is required for the scipy backend")
    import scipy.sparse as sp

    n = rowptr.shape[0] - 1
    if col.numel() > 0:
        lo, hi = col.min().item(), col.max().item()
        if lo < 0 or hi >= n:
            bad = lo if lo < 0 else hi
            raise IndexError(f"column index {bad} is out of bounds for matrix of size {n}")

    val_np = val.detach().cpu().numpy()
    rowptr_np = rowptr.detach().cpu().numpy()
    col_np = col.detach().cpu().numpy()

    return sp.csr_matrix((val_np, col_np, rowptr_np), shape=(n, n))


def scipy_matvec(val: Tensor, rowptr: Tensor, col: Tensor) -> Callable[[Tensor, Tensor], Tensor]:
    """Sparse product ``out = A @ x`` through scipy.sparse"""
    A = torch_csr_to_scipy(val, rowptr, col)

    def matvec(x: Tensor, out: Tensor) -> Tensor:
        y = A @ x.detach().cpu().numpy()
        out.copy_(torch.from_numpy(np.asarray(y, dtype=np.float64)))
        return out

    return matvec
