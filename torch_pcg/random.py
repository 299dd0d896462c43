import torch
from typing import Optional, Tuple

from .convert import coo2csr, dense2csr


def tridiagonal_csr(n:int,
                    diag:float=4.0,
                    off:float=-1.0,
                    device=torch.device('cpu')
                    )->Tuple[torch.Tensor,
                             torch.Tensor,
                             torch.Tensor]:
    """
    Tridiagonal CSR matrix, SPD whenever diag > 2*|off| (1D Poisson-like)

    Parameters
    ----------
    n : int
        number of rows
    diag : float, optional
        value on the diagonal, by default 4.0
    off : float, optional
        value on the two off-diagonals, by default -1.0
    device : torch.device, optional
        Device of the matrix, by default torch.device('cpu')

    Returns
    -------
    Tuple[torch.Tensor, torch.Tensor, torch.Tensor]
        val: torch.Tensor
            [nnz] values, columns ascending within each row
        col: torch.Tensor
            [nnz] column indices
        rowptr: torch.Tensor
            [n+1] row offsets
    """
    vals, cols = [], []
    rowptr = [0]
    for i in range(n):
        if i > 0:
            vals.append(off)
            cols.append(i - 1)
        vals.append(diag)
        cols.append(i)
        if i < n - 1:
            vals.append(off)
            cols.append(i + 1)
        rowptr.append(len(vals))

    return (torch.tensor(vals, dtype=torch.float64, device=device),
            torch.tensor(cols, dtype=torch.long, device=device),
            torch.tensor(rowptr, dtype=torch.long, device=device))


def spd_csr(n:int,
            density:float=0.1,
            seed:Optional[int]=None,
            device=torch.device('cpu')
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor]:
    """
    random SPD CSR matrix generator, A = B @ B.T + n * I for a random sparse B

    Parameters
    ----------
    n : int
        number of rows
    density : float, optional
        fraction of non-zeros in B, by default 0.1
    seed : int, optional
        seed of the generator, by default None
    device : torch.device, optional
        Device of the matrix, by default torch.device('cpu')

    Returns
    -------
    Tuple[torch.Tensor, torch.Tensor, torch.Tensor]
        val, col, rowptr of A
    """
    assert 0 <= density <= 1, "density must be in [0, 1]"

    generator = torch.Generator()
    if seed is not None:
        generator.manual_seed(seed)
    else:
        generator.seed()

    B = torch.rand(n, n, generator=generator, dtype=torch.float64)
    B[torch.rand(n, n, generator=generator) >= density] = 0
    A = B @ B.T + torch.eye(n, dtype=torch.float64) * n

    val, rowptr, col = dense2csr(A.to(device))
    return val, col, rowptr


def poisson_2d_csr(grid_n:int,
                   device=torch.device('cpu')
                   )->Tuple[torch.Tensor,
                            torch.Tensor,
                            torch.Tensor]:
    """
    2D Poisson matrix (5-point stencil) on a grid_n x grid_n grid

    Returns
    -------
    Tuple[torch.Tensor, torch.Tensor, torch.Tensor]
        val, col, rowptr of the (grid_n**2, grid_n**2) matrix
    """
    N = grid_n * grid_n
    idx = torch.arange(N, device=device)
    i, j = idx // grid_n, idx % grid_n

    def stencil(mask, offset, value):
        k = idx[mask]
        return k, k + offset, torch.full((k.shape[0],), value, dtype=torch.float64, device=device)

    entries = [
        stencil(j >= 0, 0, 4.0),
        stencil(j > 0, -1, -1.0),
        stencil(j < grid_n - 1, 1, -1.0),
        stencil(i > 0, -grid_n, -1.0),
        stencil(i < grid_n - 1, grid_n, -1.0),
    ]

    rows = torch.cat([e[0] for e in entries])
    cols = torch.cat([e[1] for e in entries])
    vals = torch.cat([e[2] for e in entries])

    val, rowptr, col = coo2csr(vals, rows, cols, N)
    return val, col, rowptr
