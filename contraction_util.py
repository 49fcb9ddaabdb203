from dataclasses import dataclass
from typing import Optional, Tuple, Dict

import torch


@dataclass(frozen=True)
class TensorDesc:
    modes: Tuple[str, ...]
    extents: Tuple[int, ...]
    dtype: torch.dtype = torch.float32

    @classmethod
    def from_extents(cls, modes, extents: Dict[str, int], dtype=torch.float32):
        return cls(tuple(modes), tuple(extents[m] for m in modes), dtype)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.extents

    @property
    def subscripts(self) -> str:
        return ''.join(self.modes)

    def check(self, tensor: torch.Tensor, name: str):
        if tuple(tensor.shape) != self.shape:
            raise ValueError(f"{name} has shape {tuple(tensor.shape)}, descriptor expects {self.shape}")
        if tensor.dtype != self.dtype:
            raise ValueError(f"{name} has dtype {tensor.dtype}, descriptor expects {self.dtype}")


def einsum_equation(desc_a: TensorDesc, desc_b: TensorDesc, desc_c: TensorDesc) -> str:
    # shared modes must agree on extent, output modes must come from an input
    seen = {}
    for desc in (desc_a, desc_b):
        for mode, extent in zip(desc.modes, desc.extents):
            if seen.setdefault(mode, extent) != extent:
                raise ValueError(f"mode '{mode}' has extents {seen[mode]} and {extent}")
    for mode, extent in zip(desc_c.modes, desc_c.extents):
        if mode not in seen:
            raise ValueError(f"output mode '{mode}' does not appear in any input")
        if seen[mode] != extent:
            raise ValueError(f"output mode '{mode}' has extent {extent}, inputs have {seen[mode]}")
    return f"{desc_a.subscripts},{desc_b.subscripts}->{desc_c.subscripts}"


@dataclass
class RunResult:
    output_path: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None
    device: Optional[str] = None
    shape: Optional[Tuple[int, ...]] = None
    contraction_time: Optional[float] = None
    run_duration: Optional[float] = None


@dataclass
class VerifyResult:
    ok: bool = False
    error: Optional[str] = None
    rows: Optional[int] = None
    cols: Optional[int] = None
    max_float_deviation: Optional[float] = None
    first_different_index: Optional[int] = None
    magnitude_ratio: Optional[float] = None
