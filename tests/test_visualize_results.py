import numpy as np

from arrpsc.config.search_space import SearchConfig
from arrpsc.search.candidate_evaluator import CandidateEvaluator
from arrpsc.visualize_results import ErrorLandscape


def test_min_error_per_prescaler_matches_full_rows():
    config = SearchConfig(base_clock=1_000_000, target_freq=7919, max_factor_a=15, max_factor_b=15)
    evaluator = CandidateEvaluator(config)
    prescalers, min_errors = ErrorLandscape(config).compute()

    assert prescalers.tolist() == list(range(16))
    for a in range(16):
        best = min(evaluator.evaluate(a, b).percent_error for b in range(16))
        assert np.isclose(min_errors[a], best, rtol=1e-12, atol=0)


def test_exact_prescalers_show_zero_error():
    config = SearchConfig(base_clock=84_000_000, target_freq=168, max_factor_a=15)
    _, min_errors = ErrorLandscape(config).compute()
    assert min_errors[7] == 0.0


def test_plot_writes_png(tmp_path):
    config = SearchConfig(base_clock=1_000_000, target_freq=7919, max_factor_a=15, max_factor_b=15)
    path = ErrorLandscape(config).plot(tmp_path / 'landscape.png', tolerance=0.222)
    assert path.exists()
    assert path.read_bytes()[:8] == b'\x89PNG\r\n\x1a\n'


def test_large_prescaler_range_is_sampled():
    config = SearchConfig(base_clock=10**12, target_freq=10**6, max_factor_a=2**40, max_factor_b=0)
    prescalers, min_errors = ErrorLandscape(config, max_points=1000).compute()
    assert len(prescalers) <= 1000
    assert prescalers[0] == 0
    assert prescalers[-1] == 2**40
    assert len(min_errors) == len(prescalers)
