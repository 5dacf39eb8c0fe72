import logging
from dataclasses import dataclass

from arrpsc.search.base_searcher import BaseSearcher
from arrpsc.search.pass_history import PassHistory


class SearchExhausted(RuntimeError):
    def __init__(self, passes, tolerance):
        super().__init__(
            f"No PSC/ARR pair found after {passes} passes (last tolerance {tolerance:f}%)")
        self.passes = passes
        self.tolerance = tolerance


@dataclass(frozen=True)
class SearchResult:
    candidate: object
    tolerance: float
    passes: int

    def to_dict(self):
        return {
            'candidate': self.candidate.to_dict(),
            'tolerance': self.tolerance,
            'passes': self.passes,
        }


class DividerSearcher(BaseSearcher):
    def __init__(self, config, evaluator=None, on_relax=None, history=None):
        super().__init__(config, evaluator)
        self.on_relax = on_relax
        self.history = history if history is not None else PassHistory()

    def search(self, max_passes=None):
        """
        Run passes over every (PSC, ARR) pair, relaxing the tolerance by
        `error_increase_step` after each pass that finds nothing.
        Raises SearchExhausted once `max_passes` passes have come up empty.
        """
        if max_passes is None:
            max_passes = self.config.max_passes
        tolerance = self.config.initial_error_pct
        self.history.clear()

        logging.info(f"Searching PSC/ARR for {self.config.target_freq}Hz "
                     f"from {self.config.base_clock}Hz, tolerance {tolerance:f}%")

        for pass_number in range(1, max_passes + 1):
            candidate = self._run_pass(tolerance)
            if candidate is not None:
                logging.info(f"Pass {pass_number}: psc={candidate.a} arr={candidate.b} "
                             f"freq={candidate.achieved_freq:f}Hz error={candidate.percent_error:f}%")
                return SearchResult(candidate=candidate, tolerance=tolerance, passes=pass_number)

            if pass_number == max_passes:
                break
            tolerance += self.config.error_increase_step
            logging.info(f"Pass {pass_number}: no candidate, tolerance raised to {tolerance:f}%")
            if self.on_relax is not None:
                self.on_relax(tolerance)

        raise SearchExhausted(max_passes, tolerance)

    def _run_pass(self, tolerance):
        """One exhaustive pass at a fixed tolerance; returns the winner or None"""
        self.reset()
        eligible_rows = 0
        for windows in self.evaluator.iter_windows(tolerance):
            eligible_rows += len(windows[0])
            for a, b in self.evaluator.iter_window_chunks(windows):
                self.consider(self.evaluator.best_candidate(a, b, tolerance), tolerance)

        self.history.add(tolerance, self.best_candidate is not None, eligible_rows)
        return self.best_candidate


def find_dividers(config, on_relax=None):
    """Validate `config` and return the SearchResult for it"""
    config.validate()
    return DividerSearcher(config, on_relax=on_relax).search()
