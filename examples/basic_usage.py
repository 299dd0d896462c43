#!/usr/bin/env python
"""
Basic Usage Examples for torch-pcg

This example demonstrates:
1. Solving a CSR triple directly with solve_pcg
2. Building a CSRMatrix from dense and SciPy matrices
3. Reading the convergence status (converged, broken down, exhausted)
4. Tracking the residual with a callback
"""

import torch
from torch_pcg import CSRMatrix, SolveStatus, self_test, solve_pcg
from torch_pcg.random import poisson_2d_csr


# =============================================================================
# 1. Direct call
# =============================================================================

def example_1_solve_csr():
    """Solve [[4, 1], [1, 3]] x = [1, 2]."""
    values = [4.0, 1.0, 1.0, 3.0]
    col_indices = [0, 1, 0, 1]
    row_ptr = [0, 2, 4]

    result = solve_pcg(values, col_indices, row_ptr, [1.0, 2.0], [0.0, 0.0],
                       tol=1e-10, max_iter=100)
    print(f"x = {result.solution.tolist()}  (expected [1/11, 7/11])")
    print(f"iterations = {result.iterations}, residual = {result.residual:.2e}")
    print(f"self_test() = {self_test():.6f}  (expected {8 / 11:.6f})")


# =============================================================================
# 2. CSRMatrix
# =============================================================================

def example_2_csr_matrix():
    """Create CSRMatrix from dense matrix (easier for small matrices)."""
    dense = torch.tensor([[4.0, -1.0,  0.0],
                          [-1.0, 4.0, -1.0],
                          [ 0.0, -1.0, 4.0]], dtype=torch.float64)

    A = CSRMatrix.from_dense(dense)
    print(f"Created: {A}")
    print(f"Diagonal: {A.diagonal().tolist()}")

    result = A.solve(torch.ones(3, dtype=torch.float64))
    print(f"A @ x = {(A @ result.solution).tolist()}")


# =============================================================================
# 3. Status
# =============================================================================

def example_3_status():
    """Iteration cap and breakdown return a result instead of raising."""
    val, col, rowptr = poisson_2d_csr(32)
    A = CSRMatrix(val, col, rowptr)
    b = torch.ones(A.n, dtype=torch.float64)

    for max_iter in [5, 500]:
        result = A.solve(b, tol=1e-8, max_iter=max_iter)
        print(f"max_iter={max_iter:>4}: {result.status.value:<12} "
              f"iterations={result.iterations:<4} residual={result.residual:.2e}")

    # zero matrix: the diagonal falls back to 1.0 and p'Ap = 0
    result = solve_pcg([0.0, 0.0], [0, 1], [0, 1, 2], [1.0, 1.0])
    assert result.status is SolveStatus.BROKEN_DOWN
    print(f"zero matrix: {result.status.value}, residual={result.residual:.2e}")


# =============================================================================
# 4. Callback
# =============================================================================

def example_4_callback():
    """Record the residual history of a 2D Poisson solve."""
    val, col, rowptr = poisson_2d_csr(64)
    history = []

    result = solve_pcg(val, col, rowptr, torch.ones(64 * 64, dtype=torch.float64),
                       tol=1e-10, callback=lambda i, x, rnorm: history.append(rnorm))
    print(f"{result.iterations} iterations, residual every 20: "
          f"{[f'{r:.1e}' for r in history[::20]]}")


if __name__ == '__main__':
    example_1_solve_csr()
    example_2_csr_matrix()
    example_3_status()
    example_4_callback()
