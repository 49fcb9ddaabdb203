import torch
import time
import sys
from triton.testing import do_bench

import contraction_matmul
import resource_management
from contraction_matmul import DESC_A, DESC_B, DESC_C

NUM_WARMUP = 10
NUM_RUNS = 100
REP_TIME = 400
WARMUP_TIME = 50


def prepare_buffers(device):
    a, b = contraction_matmul.generate_inputs()
    c = torch.zeros(DESC_C.shape, dtype=DESC_C.dtype)
    return resource_management.to_device(a, b, c, device=device)


def profile_contraction(device='cuda', num_warmup=NUM_WARMUP, num_runs=NUM_RUNS, quiet=False):
    """Profile the contraction's execution time.

    Args:
        device: Device to run on
        num_warmup: Number of warmup runs
        num_runs: Number of actual timing runs
        quiet: If True, suppress most output
    """
    device = resource_management.check_device(device)
    a, b, c = prepare_buffers(device)
    if not quiet:
        print(f"\nProfiling contraction on {device}")
        print(f"Input shapes: {[tuple(a.shape), tuple(b.shape)]}")

    def sync():
        if device.type == 'cuda':
            torch.cuda.synchronize(device)

    if not quiet:
        print("Warming up...")
    for _ in range(num_warmup):
        contraction_matmul.contract(DESC_A, a, DESC_B, b, DESC_C, c)

    if not quiet:
        print(f"Running {num_runs} iterations...")
    times = []
    for _ in range(num_runs):
        sync()
        start = time.perf_counter()

        contraction_matmul.contract(DESC_A, a, DESC_B, b, DESC_C, c)

        sync()
        end = time.perf_counter()
        times.append(end - start)

    stats = summarize(times)
    if not quiet:
        print_stats(stats)
    return stats


def summarize(times):
    """Convert per-run times in seconds to a summary in milliseconds."""
    times_ms = [t * 1000 for t in times]
    return {
        'average_ms': sum(times_ms) / len(times_ms),
        'min_ms': min(times_ms),
        'max_ms': max(times_ms),
        'all_times_ms': times_ms,
    }


def print_stats(stats):
    print(f"\nResults over {len(stats['all_times_ms'])} runs:")
    for label in ('average', 'min', 'max'):
        print(f"  {label:<8} {stats[label + '_ms']:.3f} ms")


def bench_contraction(device='cuda'):
    """Median contraction time in ms, measured with triton's do_bench."""
    device = resource_management.check_device(device)
    if device.type != 'cuda':
        raise RuntimeError("do_bench measures CUDA events and needs a CUDA device")
    a, b, c = prepare_buffers(device)
    return do_bench(lambda: contraction_matmul.contract(DESC_A, a, DESC_B, b, DESC_C, c),
                    rep=REP_TIME, warmup=WARMUP_TIME, return_mode='median')


if __name__ == "__main__":
    try:
        num_runs = int(sys.argv[1]) if len(sys.argv) > 1 else NUM_RUNS
    except ValueError:
        print("Usage: python simple_profiler.py [num_runs]")
        print("Example: python simple_profiler.py 200")
        sys.exit(1)

    try:
        profile_contraction(num_runs=num_runs)
        print(f"do_bench median: {bench_contraction():.3f} ms")
    except RuntimeError as e:
        print(f"Error: {e}")
        sys.exit(1)
