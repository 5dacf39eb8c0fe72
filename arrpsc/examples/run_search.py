import sys
from pathlib import Path
import argparse
import logging
import json
from datetime import datetime

from arrpsc.config.search_space import SearchConfig, InvalidConfig, search_space, timer_constraints
from arrpsc.search.divider_search import DividerSearcher, SearchExhausted
from arrpsc.visualize_results import ErrorLandscape


def setup_logging(output_dir=None):
    handlers = [logging.StreamHandler()]
    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(output_dir / 'search.log'))

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    for handler in handlers:
        handler.setFormatter(formatter)

    for handler in logging.root.handlers:
        handler.close()
    logging.root.handlers = []
    for handler in handlers:
        logging.root.addHandler(handler)
    logging.root.setLevel(logging.INFO)


def print_timer_info(config):
    logging.info("Timer Constraints:")
    logging.info(f"Base Clock: {config.base_clock/1_000_000:.3f}MHz")
    logging.info(f"Target Frequency: {config.target_freq}Hz")
    logging.info(f"PSC Max: {config.max_factor_a}, ARR Max: {config.max_factor_b}")
    logging.info(f"Initial Error: {config.initial_error_pct:f}%, Step: {config.error_increase_step:f}%")


def print_relax_notice(tolerance):
    print("No results. The margin of error is increased.")
    print(f"Error margin= %{tolerance:f}\n")


def print_result(result, duty=None):
    candidate = result.candidate
    print(f"arr: {candidate.b}")
    print(f"psc: {candidate.a}")
    print(f"wanted freq:{candidate.target_freq}Hz")
    print(f"freq: {candidate.achieved_freq:f}Hz")
    print(f"Delta: {candidate.signed_delta:f}Hz")
    if duty is not None:
        print(f"ccr: {candidate.compare_value(duty)}")


def build_parser():
    parser = argparse.ArgumentParser(description='Search timer PSC/ARR values for a target frequency')
    parser.add_argument('--base-clock', type=int, required=True, help='Timer input clock [Hz]')
    parser.add_argument('--target-freq', type=int, required=True, help='Wanted update frequency [Hz]')
    parser.add_argument('--max-factor-a', type=int, default=search_space['max_factor_a'], help='Largest PSC value')
    parser.add_argument('--max-factor-b', type=int, default=search_space['max_factor_b'], help='Largest ARR value')
    parser.add_argument('--error', type=float, default=search_space['initial_error_pct'], help='Initial error margin [%%]')
    parser.add_argument('--error-step', type=float, default=search_space['error_increase_step'], help='Error margin increase per pass [%%]')
    parser.add_argument('--max-passes', type=int, default=search_space['max_passes'], help='Give up after this many passes')
    parser.add_argument('--prefilter', action='store_true', help='Only try PSC values that divide the clock exactly')
    parser.add_argument('--duty', type=float, default=None, help='Also print the compare value for this duty cycle [%%]')
    parser.add_argument('--output-dir', type=str, default=None, help='Write logs and JSON results under this directory')
    parser.add_argument('--plot', type=str, default=None, help='Save a PNG of the error per PSC value')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.duty is not None and not 0 <= args.duty <= 100:
        parser.error(f"--duty must be within 0..100, got {args.duty}")

    output_dir = None
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if args.output_dir:
        output_dir = Path(args.output_dir) / timestamp
    setup_logging(output_dir)

    config = SearchConfig(
        base_clock=args.base_clock,
        target_freq=args.target_freq,
        max_factor_a=args.max_factor_a,
        max_factor_b=args.max_factor_b,
        initial_error_pct=args.error,
        error_increase_step=args.error_step,
        max_passes=args.max_passes,
        prefilter=args.prefilter,
    )
    try:
        config.validate()
    except InvalidConfig as e:
        logging.error(f"Invalid configuration: {e}")
        return 2

    print_timer_info(config)

    if output_dir is not None:
        with open(output_dir / 'config.json', 'w') as f:
            json.dump({
                'timestamp': timestamp,
                'search_config': config.to_dict(),
                'timer_constraints': timer_constraints,
            }, f, indent=2)
        with open(output_dir / 'args.json', 'w') as f:
            json.dump(vars(args), f, indent=2)

    searcher = DividerSearcher(config, on_relax=print_relax_notice)
    try:
        result = searcher.search()
    except SearchExhausted as e:
        logging.error(f"Error during search: {e}")
        return 1

    print_result(result, args.duty)
    logging.info(f"Search completed after {result.passes} pass(es) at {result.tolerance:f}% tolerance")

    if output_dir is not None:
        final_results = result.to_dict()
        if args.duty is not None:
            final_results['duty'] = args.duty
            final_results['compare_value'] = result.candidate.compare_value(args.duty)
        with open(output_dir / 'final_results.json', 'w') as f:
            json.dump(final_results, f, indent=2)
        with open(output_dir / 'search_history.json', 'w') as f:
            json.dump(searcher.history.as_records(), f, indent=2)

    if args.plot:
        ErrorLandscape(config).plot(args.plot, tolerance=result.tolerance)
        logging.info(f"Error landscape saved to {args.plot}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
