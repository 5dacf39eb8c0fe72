import math
from dataclasses import dataclass, asdict

import numpy as np


@dataclass(frozen=True)
class Candidate:
    a: int                  # prescaler (PSC)
    b: int                  # auto-reload (ARR)
    divisor: int
    achieved_freq: float
    percent_error: float
    abs_delta: float
    target_freq: int

    @property
    def signed_delta(self):
        return self.target_freq - self.achieved_freq

    def compare_value(self, duty_pct):
        """Capture/compare register value giving `duty_pct` percent high time"""
        if not 0 <= duty_pct <= 100:
            raise ValueError(f"duty must be within 0..100%, got {duty_pct}")
        return int((self.b + 1) * duty_pct / 100.0 + 0.5)

    def to_dict(self):
        result = asdict(self)
        result['signed_delta'] = self.signed_delta
        return result


class CandidateEvaluator:
    def __init__(self, config, max_cells=1 << 20):
        self.config = config
        self.base_clock = float(config.base_clock)
        self.target = float(config.target_freq)
        self.max_cells = max_cells

    def evaluate(self, a, b):
        """Score a single (PSC, ARR) pair"""
        divisor = (a + 1) * (b + 1)
        achieved = self.base_clock / divisor
        percent_error = abs(1 - self.target / achieved) * 100
        return Candidate(
            a=a,
            b=b,
            divisor=divisor,
            achieved_freq=achieved,
            percent_error=percent_error,
            abs_delta=abs(self.target - achieved),
            target_freq=self.config.target_freq,
        )

    def evaluate_pairs(self, a, b):
        """
        Vectorised `evaluate` over int64 arrays of equal length.
        Returns (achieved_freq, percent_error, abs_delta) float64 arrays.
        """
        divisors = (a + 1) * (b + 1)
        achieved = self.base_clock / divisors.astype(np.float64)
        percent_error = np.abs(1 - self.target / achieved) * 100
        abs_delta = np.abs(self.target - achieved)
        return achieved, percent_error, abs_delta

    def best_candidate(self, a, b, tolerance):
        """
        Lowest-delta candidate with percent error within `tolerance`, or None.
        Pairs must come in search order; the earliest one wins ties.
        """
        if not len(a):
            return None
        achieved, percent_error, abs_delta = self.evaluate_pairs(a, b)
        eligible = percent_error <= tolerance
        if not eligible.any():
            return None

        idx = int(np.argmin(np.where(eligible, abs_delta, np.inf)))
        best_a, best_b = int(a[idx]), int(b[idx])
        return Candidate(
            a=best_a,
            b=best_b,
            divisor=(best_a + 1) * (best_b + 1),
            achieved_freq=float(achieved[idx]),
            percent_error=float(percent_error[idx]),
            abs_delta=float(abs_delta[idx]),
            target_freq=self.config.target_freq,
        )

    def tolerance_windows(self, tolerance, a_first=0, a_last=None):
        """
        For every a in [a_first, a_last], the range of b whose divisor can land within
        `tolerance` percent of the target. Ranges are widened by one on each side so
        float rounding never drops a candidate; the per-candidate check stays exact.
        Returns (a, b_lo, b_hi) int64 arrays holding only the non-empty windows.
        """
        if a_last is None:
            a_last = self.config.max_factor_a
        d_lo, d_hi = self._divisor_bounds(tolerance)
        max_b = self.config.max_factor_b

        a = np.arange(a_first, a_last + 1, dtype=np.int64)
        scale = (a + 1).astype(np.float64)
        lo = np.ceil(d_lo / scale) - 2
        hi = np.floor(d_hi / scale)

        keep = (lo <= hi) & (lo <= max_b) & (hi >= 0)
        if self.config.prefilter:
            keep &= self.passes_prefilter(a)

        b_lo = np.clip(lo[keep], 0, max_b).astype(np.int64)
        b_hi = np.clip(hi[keep], 0, max_b).astype(np.int64)
        return a[keep], b_lo, b_hi

    def prescaler_range(self, tolerance):
        """
        First and last a that can reach the tolerance at all: below it even the largest
        reload value gives too small a divisor, above it b = 0 already divides too much.
        Padded so float rounding never cuts off a candidate.
        """
        d_lo, d_hi = self._divisor_bounds(tolerance)
        first = 0
        if d_lo > 0:
            first = max(0, math.floor(d_lo / (self.config.max_factor_b + 1) * (1 - 1e-9)) - 2)
        last = min(self.config.max_factor_a, math.ceil(d_hi * (1 + 1e-9)))
        return first, last

    def iter_windows(self, tolerance):
        """`tolerance_windows` over the reachable prescalers, `max_cells` of them at a time"""
        first, last = self.prescaler_range(tolerance)
        for block_first in range(first, last + 1, self.max_cells):
            block_last = min(block_first + self.max_cells - 1, last)
            windows = self.tolerance_windows(tolerance, block_first, block_last)
            if len(windows[0]):
                yield windows

    def _divisor_bounds(self, tolerance):
        ratio = self.base_clock / self.target
        return ratio * (1 - tolerance / 100.0), ratio * (1 + tolerance / 100.0)

    def iter_window_chunks(self, windows):
        """
        Expand (a, b_lo, b_hi) windows into flat (a, b) arrays in search order,
        at most `max_cells` pairs at a time.
        """
        a, b_lo, b_hi = windows
        widths = b_hi - b_lo + 1
        ends = np.cumsum(widths)
        start = 0
        while start < len(a):
            done = ends[start] - widths[start]
            stop = int(np.searchsorted(ends, done + self.max_cells, side='right'))
            if stop <= start:
                # a single row wider than max_cells
                row_a = a[start]
                for first in range(int(b_lo[start]), int(b_hi[start]) + 1, self.max_cells):
                    last = min(first + self.max_cells - 1, int(b_hi[start]))
                    b = np.arange(first, last + 1, dtype=np.int64)
                    yield np.full(len(b), row_a, dtype=np.int64), b
                start += 1
                continue

            row_widths = widths[start:stop]
            offsets = np.cumsum(row_widths) - row_widths
            cells = np.arange(int(row_widths.sum()), dtype=np.int64)
            yield (np.repeat(a[start:stop], row_widths),
                   np.repeat(b_lo[start:stop] - offsets, row_widths) + cells)
            start = stop

    def passes_prefilter(self, a):
        """Outer-loop skip test: exact clock division and an in-range exact reload value"""
        a = np.asarray(a, dtype=np.int64)
        divides = np.uint64(self.config.base_clock) % (a + 1).astype(np.uint64) == 0
        x = self.base_clock / (self.target * (a + 1).astype(np.float64)) - 1
        return divides & (x <= self.config.max_factor_b)
