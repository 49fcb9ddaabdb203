import os
import sys
import tempfile
import torch
import numpy as np

import contraction_matmul
from contraction_util import VerifyResult

atol = 1e-2
rtol = 1e-2
SEED = 13


def read_matrix(path) -> np.ndarray:
    """Parse a whitespace-delimited matrix file into a 2D float array."""
    rows = []
    with open(path) as f:
        for lineno, line in enumerate(f, start=1):
            tokens = line.split()
            if not tokens:
                raise ValueError(f"{path}:{lineno}: empty line")
            try:
                rows.append([float(t) for t in tokens])
            except ValueError:
                raise ValueError(f"{path}:{lineno}: non-numeric token") from None
            if len(rows[-1]) != len(rows[0]):
                raise ValueError(f"{path}:{lineno}: expected {len(rows[0])} values, found {len(rows[-1])}")
    if not rows:
        raise ValueError(f"{path}: no rows")
    return np.array(rows, dtype=np.float64)


def load_checked(path, rows, cols):
    """Parse path once; return the shape check and the parsed values (None on failure)."""
    result = VerifyResult()
    try:
        values = read_matrix(path)
    except (OSError, ValueError) as e:
        result.error = str(e)
        return result, None
    result.rows, result.cols = values.shape
    if values.shape != (rows, cols):
        result.error = f"Output shape {values.shape} does not match expected {(rows, cols)}"
        return result, None
    result.ok = True
    return result, values


def check_shape(path, rows=contraction_matmul.M, cols=contraction_matmul.N) -> VerifyResult:
    result, _ = load_checked(path, rows, cols)
    return result


def verify(path, a: torch.Tensor, b: torch.Tensor, atol=atol, rtol=rtol) -> VerifyResult:
    """Compare the matrix written at path against the reference product of a and b.

    On mismatch the result carries the largest absolute deviation, the first
    row holding a differing value and the relative norm of the difference.
    """
    a = a.detach().cpu().double()
    b = b.detach().cpu().double()
    rows, cols = a.shape[0], b.shape[1]
    result, values = load_checked(path, rows, cols)
    if not result.ok:
        return result

    solution_output = torch.from_numpy(values)
    original_output = a @ b
    result.max_float_deviation = float(torch.max(torch.abs(solution_output - original_output)))
    if not torch.allclose(original_output, solution_output, atol=atol, rtol=rtol):
        diffidxs = (torch.abs(solution_output - original_output) > atol).nonzero(as_tuple=True)
        if len(diffidxs[0]):
            result.first_different_index = diffidxs[0][0].item()
        result.magnitude_ratio = float(torch.norm(original_output.flatten() - solution_output.flatten()) / torch.norm(solution_output.flatten()))
        result.error = "Output values do not match"
        result.ok = False
    return result


def check_run(device='cuda', seed=SEED, output_path=None) -> VerifyResult:
    """Run the program with a fixed seed and verify what it wrote."""
    if output_path is None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            return check_run(device, seed, os.path.join(tmp_dir, 'matrix_output.txt'))
    run_result = contraction_matmul.run(output_path, device=device, seed=seed)
    if run_result.error is not None:
        return VerifyResult(error=f"{run_result.error}\n{run_result.message or ''}")
    a, b = contraction_matmul.generate_inputs(seed)
    return verify(output_path, a, b)


def print_report(result: VerifyResult):
    if result.rows is not None:
        print(f"Shape: {result.rows}x{result.cols}")
    if result.max_float_deviation is not None:
        print(f"Max deviation: {result.max_float_deviation:.3e}")
    if result.ok:
        print("PASSED")
        return
    print(f"FAILED: {result.error}")
    if result.first_different_index is not None:
        print(f"First differing row: {result.first_different_index}")
    if result.magnitude_ratio is not None:
        print(f"Magnitude ratio: {result.magnitude_ratio:.3e}")


if __name__ == "__main__":
    # python verify_output.py                   -> run with a fixed seed and check values
    # python verify_output.py results/file.txt  -> check the shape of an existing file
    if len(sys.argv) > 1:
        result = check_shape(sys.argv[1])
    else:
        device = 'cuda' if torch.cuda.is_available() else 'cpu'
        result = check_run(device)
    print_report(result)
    sys.exit(0 if result.ok else 1)
