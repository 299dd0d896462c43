"""
Backend management for torch-pcg

Every backend runs the same PCG iteration; a backend only provides the sparse
matrix-vector product y = A @ x used inside the loop.

Backends:
- 'pytorch': PyTorch-native (CPU & CUDA) - index_add based CSR product
- 'scipy': SciPy backend (CPU only) - scipy.sparse.csr_matrix product

Usage:
    # Auto-select backend based on device
    result = solve_pcg(val, col, rowptr, b)  # scipy on CPU if installed, else pytorch

    # Specify backend
    result = solve_pcg(val, col, rowptr, b, backend='pytorch')
"""

from typing import Callable, Dict, List, Literal, Optional
import torch
from torch import Tensor

# Type aliases
BackendType = Literal['pytorch', 'scipy', 'auto']

BACKENDS: List[str] = ['pytorch', 'scipy']

# Device types each backend can run on
BACKEND_DEVICES: Dict[str, List[str]] = {
    'pytorch': ['cpu', 'cuda'],
    'scipy': ['cpu'],
}

# Backend availability flags
_scipy_available: Optional[bool] = None


def is_scipy_available() -> bool:
    """Check if SciPy backend is available"""
    global _scipy_available
    if _scipy_available is None:
        try:
            import scipy.sparse
            _scipy_available = True
        except ImportError:
            _scipy_available = False
    return _scipy_available


def get_available_backends() -> List[str]:
    """Get list of available backends"""
    backends = ['pytorch']  # Always available

    if is_scipy_available():
        backends.append('scipy')

    return backends


def select_backend(device: torch.device, prefer: Optional[str] = None) -> str:
    """
    Resolve a backend name for the given device.

    Parameters
    ----------
    device : torch.device
        Device holding the matrix values
    prefer : str, optional
        Requested backend, None or 'auto' to pick automatically

    Returns
    -------
    str
        'pytorch' or 'scipy'
    """
    if prefer is None or prefer == 'auto':
        if device.type == 'cpu' and is_scipy_available():
            return 'scipy'
        return 'pytorch'

    if prefer not in BACKENDS:
        raise ValueError(f"Unknown backend: {prefer}. Available: {', '.join(BACKENDS)}")
    if prefer == 'scipy' and not is_scipy_available():
        raise RuntimeError("SciPy backend requested but scipy is not installed")
    if device.type not in BACKEND_DEVICES[prefer]:
        raise RuntimeError(f"Backend '{prefer}' does not support device type '{device.type}'")
    return prefer


def get_matvec(
    backend: str,
    val: Tensor,
    rowptr: Tensor,
    col: Tensor,
    row: Optional[Tensor] = None,
) -> Callable[[Tensor, Tensor], Tensor]:
    """
    Build the product ``matvec(x, out) -> out`` for a resolved backend.

    Parameters
    ----------
    backend : str
        'pytorch' or 'scipy', as returned by ``select_backend``
    val, rowptr, col : Tensor
        CSR matrix
    row : Tensor, optional
        precomputed ``csr_row_indices(rowptr)`` (pytorch backend)
    """
    if backend == 'pytorch':
        from .pytorch_backend import pytorch_matvec
        return pytorch_matvec(val, rowptr, col, row=row)
    elif backend == 'scipy':
        from .scipy_backend import scipy_matvec
        return scipy_matvec(val, rowptr, col)
    raise ValueError(f"Unknown backend: {backend}. Available: {', '.join(BACKENDS)}")
