from dataclasses import dataclass
from typing import Optional


@dataclass
class DecompositionConfig:
    error: float
    precision: Optional[float] = None
    divide_by_gcd: bool = True
    n_jobs: int = 1
    memo_depth: int = 1

    def __post_init__(self):
        if self.error < 0:
            raise ValueError(f"error should be non-negative, but got {self.error}")
        if self.precision is not None and not self.precision > 0:
            raise ValueError(f"precision should be a positive value, but got {self.precision}")
        if self.memo_depth < 0:
            raise ValueError(f"memo_depth should be non-negative, but got {self.memo_depth}")

    def to_dict(self) -> dict:
        return {
            'error': self.error,
            'precision': self.precision,
            'divide_by_gcd': self.divide_by_gcd,
            'n_jobs': self.n_jobs,
            'memo_depth': self.memo_depth,
        }

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'DecompositionConfig':
        error = config_dict.get('error')
        if error is None:
            raise ValueError("error is required and cannot be None.")
        kwargs = {}
        for field_ in cls.__dataclass_fields__:  # unknown keys are ignored
            if field_ in config_dict and config_dict[field_] is not None:
                kwargs[field_] = config_dict[field_]
        kwargs['error'] = error
        return cls(**kwargs)
