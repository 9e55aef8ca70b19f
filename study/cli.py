"""
Scheduler simulation CLI.

Replays a sequence of study actions against a fresh card and prints the
schedule after each one. Useful for checking how intervals grow.

Usage:
    python -m study.cli simulate new_good review_normal review_easy
    python -m study.cli simulate --start 2024-01-01T10:00 --gap-days 1 new_good review_hard
    python -m study.cli simulate --json new_forgot new_good
"""

import argparse
import json
import sys
from datetime import datetime, timedelta

from study.models import CardState
from study.scheduler import InvalidActionError, transition


def cmd_simulate(args):
    """Apply each action in turn, advancing the clock between steps."""
    now = datetime.fromisoformat(args.start) if args.start else datetime.now()
    state = CardState()
    steps = []

    for i, action in enumerate(args.actions, 1):
        try:
            state = transition(state, action, now)
        except InvalidActionError as e:
            print(f"Step {i}: {e}", file=sys.stderr)
            sys.exit(2)
        steps.append({'step': i, 'action': action, 'at': now.isoformat(), **state.to_dict()})
        if args.gap_days is not None:
            now = now + timedelta(days=args.gap_days)
        elif state.next_review is not None and state.next_review > now:
            now = state.next_review

    if args.json:
        print(json.dumps(steps, indent=2))
        return

    for s in steps:
        print(f"  {s['step']:>2}. {s['action']:<14} status={s['status']:<6} "
              f"interval={s['interval']:.2f}  ease={s['ease_factor']:.2f}  "
              f"lapses={s['lapse_count']}  reviews={s['review_count']}  "
              f"next={s['next_review']}")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Flashcard scheduler tools')
    subparsers = parser.add_subparsers(dest='command')

    sim_parser = subparsers.add_parser('simulate',
                                       help='Replay study actions on a new card')
    sim_parser.add_argument('actions', nargs='+', help='Study actions, in order')
    sim_parser.add_argument('--start', default=None,
                            help='ISO timestamp of the first action (default: now)')
    sim_parser.add_argument(
        '--gap-days', type=float, default=None,
        help='Days between actions (default: jump to each next_review)',
    )
    sim_parser.add_argument('--json', action='store_true',
                            help='Print steps as JSON')

    args = parser.parse_args(argv)

    if args.command == 'simulate':
        cmd_simulate(args)
    else:
        parser.print_help()


if __name__ == '__main__':
    main()
