from abc import ABC, abstractmethod

from arrpsc.search.candidate_evaluator import CandidateEvaluator


class BaseSearcher(ABC):
    def __init__(self, config, evaluator=None):
        self.config = config
        self.evaluator = evaluator or CandidateEvaluator(config)
        self.best_candidate = None
        self.best_delta = float('inf')

    @abstractmethod
    def search(self, max_passes=None):
        pass

    def reset(self):
        self.best_candidate = None
        self.best_delta = float('inf')

    def consider(self, candidate, tolerance):
        """
        Keep `candidate` if it is eligible and strictly closer than the current best.
        Strict comparison keeps the first candidate found on ties.
        """
        if candidate is None or candidate.percent_error > tolerance:
            return False
        if candidate.abs_delta < self.best_delta:
            self.best_candidate = candidate
            self.best_delta = candidate.abs_delta
            return True
        return False
