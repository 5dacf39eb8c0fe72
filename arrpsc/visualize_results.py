import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from arrpsc.config.search_space import SearchConfig, timer_constraints
from arrpsc.search.candidate_evaluator import CandidateEvaluator


class ErrorLandscape:
    """Smallest achievable frequency error per prescaler value, sampled to at most `max_points`"""

    def __init__(self, config, max_points=1 << 16):
        self.config = config
        self.evaluator = CandidateEvaluator(config)
        self.max_points = max_points
        self.prescalers = np.array([], dtype=np.int64)
        self.min_errors = np.array([], dtype=np.float64)

    def compute(self):
        max_a = self.config.max_factor_a
        max_b = self.config.max_factor_b
        if max_a + 1 <= self.max_points:
            a = np.arange(max_a + 1, dtype=np.int64)
        else:
            a = np.unique(np.linspace(0, max_a, self.max_points).astype(np.int64))

        # the best reload value sits on one side or the other of the exact ratio
        ratio = self.evaluator.base_clock / self.evaluator.target
        below = np.clip(np.floor(ratio / (a + 1).astype(np.float64)) - 1, 0, max_b).astype(np.int64)
        above = np.minimum(below + 1, max_b)

        _, below_errors, _ = self.evaluator.evaluate_pairs(a, below)
        _, above_errors, _ = self.evaluator.evaluate_pairs(a, above)

        self.prescalers = a
        self.min_errors = np.minimum(below_errors, above_errors)
        return self.prescalers, self.min_errors

    def plot(self, path, tolerance=None):
        if not len(self.prescalers):
            self.compute()

        plt.figure(figsize=(12, 6))
        plt.plot(self.prescalers, self.min_errors, label='Best error per PSC', color='blue', linestyle='-')
        if tolerance is not None:
            plt.axhline(tolerance, label=f'Tolerance {tolerance:g}%', color='red', linestyle='--')

        plt.title(f"PSC/ARR error for {self.config.target_freq}Hz from {self.config.base_clock}Hz", fontsize=16)
        plt.xlabel("PSC", fontsize=12)
        plt.ylabel("Error [%]", fontsize=12)
        plt.yscale('symlog', linthresh=1e-6)
        plt.grid(True, linestyle='--', alpha=0.6)
        plt.legend()
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path


if __name__ == "__main__":
    landscape = ErrorLandscape(SearchConfig(base_clock=timer_constraints['base_clock'], target_freq=168))
    landscape.compute()
    landscape.plot("error_landscape.png", tolerance=0.01)
