import pytest
import torch

import resource_management


def test_check_device_cpu():
    assert resource_management.check_device('cpu') == torch.device('cpu')


@pytest.mark.skipif(torch.cuda.is_available(), reason="needs a machine without CUDA")
def test_check_device_without_cuda():
    with pytest.raises(RuntimeError, match="CUDA is not available"):
        resource_management.check_device('cuda')


def test_round_trip_passes_non_tensors_through():
    a = torch.rand(3, 4)
    d_a, scale = resource_management.to_device(a, 2.0, device='cpu')
    assert scale == 2.0
    (h_a,) = resource_management.to_host(d_a)
    assert torch.equal(h_a, a)


@pytest.mark.skipif(not torch.cuda.is_available(), reason="needs CUDA")
def test_cuda_round_trip():
    a = torch.rand(96, 64)
    (d_a,) = resource_management.to_device(a, device='cuda')
    assert d_a.is_cuda
    (h_a,) = resource_management.to_host(d_a)
    assert not h_a.is_cuda
    assert torch.equal(h_a, a)
    resource_management.release('cuda')
