# Entry point for playing a job bracket in the terminal

import argparse
import logging
import os
import random
import sys

from catalog import load_candidates, export_results
from core.exceptions import BracketError
from core.double_elimination import (
    describe_match,
    get_bracket_progress,
    initialize_bracket,
    select_winner,
    undo_selection,
)


def parse_args(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Rank 128 jobs with a double elimination bracket.')
    parser.add_argument('--catalog', default=os.path.join(base_dir, 'data', 'jobs.yaml'),
                        help='YAML file with the 128 jobs')
    parser.add_argument('--seed', type=int, default=None, help='Seed for a reproducible shuffle')
    parser.add_argument('--auto', action='store_true', help='Always pick the first job (demo run)')
    parser.add_argument('--export', default=None, help='Write the top 5 to a .yaml or .csv file')
    parser.add_argument('--label', default=None, help='Label stored with the exported results')
    parser.add_argument('--verbose', action='store_true', help='Log bracket progression')
    return parser.parse_args(argv)


def print_match(state):
    match = state.current_match
    progress = get_bracket_progress(state)
    print(f"\n[{progress['completed_matches']}/{progress['total_matches']}] "
          f"{describe_match(match)} - {progress['remaining_jobs']} jobs remaining")
    print(f"  1) {match.job1.title}: {match.job1.description}")
    print(f"  2) {match.job2.title}: {match.job2.description}")


def play_interactive(state, input_fn=input):
    """Prompt for every match. Returns the final state, or None if the user quits."""
    while state.current_match is not None:
        print_match(state)
        choice = input_fn("Pick 1 or 2 (u = undo, q = quit): ").strip().lower()
        if choice == '1':
            state = select_winner(state, state.current_match.job1)
        elif choice == '2':
            state = select_winner(state, state.current_match.job2)
        elif choice == 'u':
            if not state.history:
                print("Nothing to undo.")
            state = undo_selection(state)
        elif choice == 'q':
            return None
        else:
            print("Please answer 1, 2, u or q.")
    return state


def play_auto(state):
    while state.current_match is not None:
        state = select_winner(state, state.current_match.job1)
    return state


def print_results(state):
    print("\n--- Your Top Choices ---")
    for place, job in enumerate(state.winners, start=1):
        print(f"#{place} {job.title}: {job.description}")


def write_export(path, winners, label=None):
    fmt = 'csv' if path.lower().endswith('.csv') else 'yaml'
    with open(path, mode='w', encoding='utf-8', newline='') as file:
        file.write(export_results(winners, label=label, fmt=fmt))


def main(argv=None, input_fn=input):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        jobs = load_candidates(args.catalog)
        rng = random.Random(args.seed) if args.seed is not None else None
        state = initialize_bracket(jobs, rng)
    except BracketError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.auto:
        state = play_auto(state)
    else:
        state = play_interactive(state, input_fn)
        if state is None:
            print("Bracket abandoned.")
            return 0

    print_results(state)
    if args.export:
        write_export(args.export, state.winners, args.label)
        print(f"\nResults written to {args.export}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
