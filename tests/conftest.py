import logging

import pytest

from arrpsc.config.search_space import SearchConfig


def brute_force(config, tolerance):
    """Plain double loop over every (PSC, ARR) pair"""
    best = None
    best_delta = float('inf')
    base_clock = float(config.base_clock)
    target = float(config.target_freq)
    for a in range(config.max_factor_a + 1):
        for b in range(config.max_factor_b + 1):
            divisor = (a + 1) * (b + 1)
            achieved = base_clock / divisor
            if abs(1 - target / achieved) * 100 <= tolerance:
                delta = abs(target - achieved)
                if delta < best_delta:
                    best = (a, b, achieved)
                    best_delta = delta
    return best


@pytest.fixture
def stm32_config():
    return SearchConfig(base_clock=84_000_000, target_freq=168)


@pytest.fixture
def prime_config():
    # no divisor within 0.01% of 1MHz / 7919Hz fits in 4 bit registers
    return SearchConfig(base_clock=1_000_000, target_freq=7919, max_factor_a=15, max_factor_b=15)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """`setup_logging` replaces the root handlers; put the originals back after each test"""
    handlers = logging.root.handlers[:]
    level = logging.root.level
    yield
    for handler in logging.root.handlers:
        if handler not in handlers:
            handler.close()
    logging.root.handlers = handlers
    logging.root.setLevel(level)
