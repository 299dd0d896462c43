import torch
import torch_pcg as pcg


if __name__ == '__main__':
    device = 'cuda' if torch.cuda.is_available() else 'cpu'
    val, col, rowptr = pcg.random.spd_csr(100, density=0.05, seed=0, device=device)

    b = torch.randn(100).double().to(device)
    result = pcg.solve_pcg(val, col, rowptr, b, tol=1e-10, max_iter=1000)

    print(f"x={result.solution}")
    print(f"iterations={result.iterations} residual={result.residual:.2e} status={result.status.value}")
