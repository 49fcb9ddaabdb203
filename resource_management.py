import torch


def check_device(device):
    device = torch.device(device)
    if device.type == 'cuda' and not torch.cuda.is_available():
        raise RuntimeError("CUDA is not available. Install the CUDA-enabled PyTorch build and ensure an NVIDIA GPU is present.")
    return device


def to_device(*tensors, device):
    device = check_device(device)
    return [x.to(device) if isinstance(x, torch.Tensor) else x for x in tensors]


def to_host(*tensors):
    if any(isinstance(x, torch.Tensor) and x.is_cuda for x in tensors):
        torch.cuda.synchronize()
    return [x.cpu() if isinstance(x, torch.Tensor) else x for x in tensors]


def release(device):
    if torch.device(device).type == 'cuda':
        torch.cuda.synchronize()
        torch.cuda.empty_cache()
