import math
from dataclasses import dataclass, asdict

import numpy as np

# Timer constraints
timer_constraints = {
    'register_bits': 16,
    'base_clock': 84_000_000,          # 84MHz APB1 timer clock
}

search_space = {
    'max_factor_a': 2**timer_constraints['register_bits'] - 1,     # PSC
    'max_factor_b': 2**timer_constraints['register_bits'] - 1,     # ARR
    'initial_error_pct': 0.01,
    'error_increase_step': 0.002,
    'max_passes': 100_000,
}

MAX_CLOCK = 2**64 - 1


class InvalidConfig(ValueError):
    pass


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SearchConfig:
    base_clock: int
    target_freq: int
    max_factor_a: int = search_space['max_factor_a']
    max_factor_b: int = search_space['max_factor_b']
    initial_error_pct: float = search_space['initial_error_pct']
    error_increase_step: float = search_space['error_increase_step']
    max_passes: int = search_space['max_passes']
    prefilter: bool = False

    def validate(self):
        """Raise InvalidConfig if no search should be attempted with these values"""
        if not _is_int(self.base_clock) or self.base_clock <= 0:
            raise InvalidConfig(f"base_clock must be a positive integer, got {self.base_clock!r}")
        if self.base_clock > MAX_CLOCK:
            raise InvalidConfig(f"base_clock must fit in 64 bits, got {self.base_clock}")
        if not _is_int(self.target_freq) or self.target_freq <= 0:
            raise InvalidConfig(f"target_freq must be a positive integer, got {self.target_freq!r}")
        if self.target_freq > self.base_clock:
            raise InvalidConfig(
                f"target_freq {self.target_freq}Hz exceeds base_clock {self.base_clock}Hz")

        for name in ('max_factor_a', 'max_factor_b'):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise InvalidConfig(f"{name} must be a non-negative integer, got {value!r}")

        if (self.max_factor_a + 1) * (self.max_factor_b + 1) > np.iinfo(np.int64).max:
            raise InvalidConfig("max_factor_a/max_factor_b product overflows a 64 bit divisor")

        if not math.isfinite(self.initial_error_pct) or self.initial_error_pct < 0:
            raise InvalidConfig(f"initial_error_pct must be a finite value >= 0, got {self.initial_error_pct}")
        if not math.isfinite(self.error_increase_step) or self.error_increase_step <= 0:
            raise InvalidConfig(f"error_increase_step must be a finite value > 0, got {self.error_increase_step}")
        if not _is_int(self.max_passes) or self.max_passes < 1:
            raise InvalidConfig(f"max_passes must be >= 1, got {self.max_passes!r}")
        return self

    def to_dict(self):
        return asdict(self)
