import pathlib
import subprocess
import sys

import pytest
import torch

ROOT = pathlib.Path(__file__).resolve().parent.parent


def run_script(*args):
    return subprocess.run([sys.executable, *args], cwd=ROOT, capture_output=True, text=True, timeout=300)


@pytest.mark.skipif(torch.cuda.is_available(), reason="needs a machine without CUDA")
def test_main_exits_1_without_cuda():
    proc = run_script('contraction_matmul.py')
    assert proc.returncode == 1
    assert "Error: Device not available" in proc.stdout
    assert "CUDA is not available" in proc.stdout


def test_verify_missing_file_exits_1(tmp_path):
    proc = run_script('verify_output.py', str(tmp_path / 'missing.txt'))
    assert proc.returncode == 1
    assert "FAILED" in proc.stdout


def test_verify_good_file_exits_0(tmp_path):
    path = tmp_path / 'out.txt'
    path.write_text(('1 ' * 127 + '1\n') * 96)
    proc = run_script('verify_output.py', str(path))
    assert proc.returncode == 0
    assert "Shape: 96x128" in proc.stdout
    assert "PASSED" in proc.stdout
