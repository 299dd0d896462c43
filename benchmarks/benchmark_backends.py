#!/usr/bin/env python
"""
Benchmark for the torch-pcg backends.

Solves the 2D Poisson problem on growing grids with each available backend
and, for reference, scipy.sparse.linalg.cg, recording time, iterations and
the true residual ||b - Ax||.

Usage:
    python benchmark_backends.py                 # Run full benchmark
    python benchmark_backends.py --grids 32 64   # Only some grid sizes
"""

import argparse
import json
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
import torch

import torch_pcg as pcg
from torch_pcg.random import poisson_2d_csr

OUTPUT_DIR = Path(__file__).parent / "results" / "benchmark_backends"


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""
    backend: str
    dof: int
    time_ms: float
    iterations: int
    residual: float
    success: bool
    error_msg: Optional[str] = None


def true_residual(val, col, rowptr, x, b) -> float:
    return (b - pcg.spmv_csr(val, rowptr, col, x)).norm().item()


def run_torch_pcg(backend: str, grid_n: int, tol: float, device: str) -> BenchmarkResult:
    val, col, rowptr = poisson_2d_csr(grid_n, device=device)
    b = torch.ones(grid_n * grid_n, dtype=torch.float64, device=device)
    dof = grid_n * grid_n
    try:
        pcg.solve_pcg(val, col, rowptr, b, tol=tol, max_iter=10, backend=backend)  # warmup
        if device == 'cuda':
            torch.cuda.synchronize()
        t0 = time.perf_counter()
        result = pcg.solve_pcg(val, col, rowptr, b, tol=tol, backend=backend)
        if device == 'cuda':
            torch.cuda.synchronize()
        elapsed = (time.perf_counter() - t0) * 1000
    except RuntimeError as e:
        return BenchmarkResult(backend, dof, 0.0, 0, float('nan'), False, str(e))
    return BenchmarkResult(
        backend=f"{backend}-{device}",
        dof=dof,
        time_ms=elapsed,
        iterations=result.iterations,
        residual=true_residual(val, col, rowptr, result.solution, b),
        success=result.converged,
    )


def run_scipy_cg(grid_n: int, tol: float) -> BenchmarkResult:
    import scipy.sparse as sp
    from scipy.sparse.linalg import cg

    val, col, rowptr = poisson_2d_csr(grid_n)
    dof = grid_n * grid_n
    A = sp.csr_matrix((val.numpy(), col.numpy(), rowptr.numpy()), shape=(dof, dof))
    b = np.ones(dof)
    M = sp.diags(1.0 / A.diagonal())

    iterations = [0]

    def count(xk):
        iterations[0] += 1

    t0 = time.perf_counter()
    x, info = cg(A, b, rtol=tol, maxiter=pcg.DEFAULT_MAXITER, M=M, callback=count)
    elapsed = (time.perf_counter() - t0) * 1000
    return BenchmarkResult(
        backend="scipy.cg",
        dof=dof,
        time_ms=elapsed,
        iterations=iterations[0],
        residual=float(np.linalg.norm(b - A @ x)),
        success=info == 0,
    )


def main():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('--grids', type=int, nargs='+', default=[16, 32, 64, 128, 256])
    parser.add_argument('--tol', type=float, default=1e-8)
    args = parser.parse_args()

    results: List[BenchmarkResult] = []
    devices = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])

    for grid_n in args.grids:
        print(f"\n=== grid {grid_n}x{grid_n} (DOF={grid_n * grid_n:,}) ===")
        runs = [run_torch_pcg('pytorch', grid_n, args.tol, device) for device in devices]
        if pcg.is_scipy_available():
            runs.append(run_torch_pcg('scipy', grid_n, args.tol, 'cpu'))
            runs.append(run_scipy_cg(grid_n, args.tol))
        for r in runs:
            status = "ok" if r.success else (r.error_msg or "not converged")
            print(f"  {r.backend:<14} {r.time_ms:10.2f} ms  iters={r.iterations:<6} "
                  f"residual={r.residual:.2e}  {status}")
        results.extend(runs)

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    with open(OUTPUT_DIR / "results.json", 'w') as f:
        json.dump([asdict(r) for r in results], f, indent=2)
    print(f"\nResults saved to {OUTPUT_DIR / 'results.json'}")


if __name__ == '__main__':
    main()
