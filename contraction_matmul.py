import time
import os
import sys
import random
import traceback
import torch
import numpy as np

import resource_management
from contraction_util import TensorDesc, RunResult, einsum_equation

# C[m, n] = ALPHA * A[m, k] * B[k, n] + BETA * C[m, n]
M = 96
K = 64
N = 128
ALPHA = 1.0
BETA = 0.0

EXTENTS = {'m': M, 'k': K, 'n': N}
DESC_A = TensorDesc.from_extents('mk', EXTENTS)
DESC_B = TensorDesc.from_extents('kn', EXTENTS)
DESC_C = TensorDesc.from_extents('mn', EXTENTS)

OUTPUT_PATH = 'results/matrix_output.txt'
# matches the default formatting of a C++ output stream
FLOAT_FORMAT = '%g'


def set_seed(seed: int):
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed(seed)
    random.seed(seed)
    np.random.seed(seed)


def generate_inputs(seed=None):
    """Populate A and B on the host with values uniform in [0, 1).

    Without a seed every call draws fresh values.
    """
    if seed is not None:
        set_seed(seed)
    a = torch.rand(DESC_A.shape, dtype=DESC_A.dtype)
    b = torch.rand(DESC_B.shape, dtype=DESC_B.dtype)
    return a, b


def contract(desc_a: TensorDesc, a: torch.Tensor, desc_b: TensorDesc, b: torch.Tensor,
             desc_c: TensorDesc, c: torch.Tensor, alpha=ALPHA, beta=BETA) -> torch.Tensor:
    """Contract a and b over their shared modes and accumulate into c in place.

    Args:
        desc_a, desc_b, desc_c: Descriptors giving the modes and extents of each buffer.
        a, b: Input tensors, on the same device as c.
        c: Output accumulator, updated as ``alpha * contraction + beta * c``.

    Returns:
        torch.Tensor: c
    """
    equation = einsum_equation(desc_a, desc_b, desc_c)
    desc_a.check(a, 'A')
    desc_b.check(b, 'B')
    desc_c.check(c, 'C')
    if not (a.device == b.device == c.device):
        raise ValueError(f"Buffers live on different devices: {a.device}, {b.device}, {c.device}")
    product = torch.einsum(equation, a, b)
    if beta == 0:
        # beta == 0 ignores whatever c held, including NaNs
        c.copy_(product)
        if alpha != 1:
            c.mul_(alpha)
    else:
        c.mul_(beta).add_(product, alpha=alpha)
    return c


def write_matrix(path, c: torch.Tensor):
    """Write c row-major, one row per line, values separated by single spaces."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    values = c.detach().cpu().numpy()
    with open(path, 'w') as f:
        np.savetxt(f, values, fmt=FLOAT_FORMAT, delimiter=' ')


def run(output_path=OUTPUT_PATH, device='cuda', seed=None) -> RunResult:
    run_start_time = time.time()
    result = RunResult(output_path=output_path, device=str(device))

    try:
        device = resource_management.check_device(device)
    except RuntimeError as e:
        result.error = "Device not available"
        result.message = str(e)
        return result

    print("Creating matrices...")
    a, b = generate_inputs(seed)
    c = torch.zeros(DESC_C.shape, dtype=DESC_C.dtype)

    try:
        d_a, d_b, d_c = resource_management.to_device(a, b, c, device=device)
    except Exception:
        result.error = "Copy to device failed"
        result.message = traceback.format_exc()
        return result

    print(f"Contracting {DESC_A.subscripts},{DESC_B.subscripts}->{DESC_C.subscripts} "
          f"with extents {EXTENTS} on {device}...")
    try:
        contraction_start_time = time.perf_counter()
        contract(DESC_A, d_a, DESC_B, d_b, DESC_C, d_c)
        if device.type == 'cuda':
            torch.cuda.synchronize(device)
        result.contraction_time = time.perf_counter() - contraction_start_time
    except Exception:
        result.error = "Contraction failed"
        result.message = traceback.format_exc()
        return result

    try:
        (c,) = resource_management.to_host(d_c)
    except Exception:
        result.error = "Copy to host failed"
        result.message = traceback.format_exc()
        return result
    result.shape = tuple(c.shape)

    try:
        write_matrix(output_path, c)
    except OSError:
        result.error = f"Could not open output file {output_path}"
        result.message = traceback.format_exc()
        return result
    print(f"Wrote {result.shape[0]}x{result.shape[1]} result to {output_path}")

    resource_management.release(device)
    result.run_duration = time.time() - run_start_time
    return result


if __name__ == "__main__":
    result = run()
    if result.error is not None:
        print(f"Error: {result.error}")
        if result.message:
            print(result.message)
        sys.exit(1)
    print(f"Contraction completed in {result.contraction_time * 1000:.3f} ms.")
