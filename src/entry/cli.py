"""
CLI tool for replaying note entry scripts.

Usage:
    # Replay an edit script on an empty 4/4 score
    python -m src.entry.cli run script.yaml

    # Use a config file and override the time signature
    python -m src.entry.cli run script.yaml --config entry.yaml --time-signature 3/4

A script is a YAML list of steps:

    - note: C4            # or a list of pitches for a chord
      value: half
      dotted: false
      mode: overwrite
    - rest: eighth
    - select: [0, 0, 1]   # track, measure, event index (omit index to append)
    - select: [0, 0, 1, 0]  # ... and note index within the chord
    - tone: G4            # add a pitch to the selected chord
    - tie: toggle         # or true / false, on the selected note
    - tuplet: [3, 2]      # n events in the space of m, from the selected event
    - unmake_tuplet: true
    - mode: insert        # default entry mode for later steps
    - undo: true
    - redo: true
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .api import EntryAPI, EntryResult
from .config import EntryConfig, dict_to_config, load_yaml_config, merge_configs


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def load_script(file_path: Path) -> List[Dict[str, Any]]:
    """Load an edit script from a YAML file."""
    with open(file_path, encoding='utf-8') as f:
        data = yaml.safe_load(f)

    # Support a bare list or a dict with 'steps'
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and 'steps' in data:
        return data['steps'] or []
    raise ValueError("Invalid script format. Expected list or dict with 'steps' key.")


def build_config(args) -> EntryConfig:
    """Merge config file values with command-line overrides."""
    config_dict = load_yaml_config(args.config) if args.config else {}
    config_dict = config_dict.get('entry', config_dict)
    overrides = {
        'time_signature': args.time_signature,
        'default_mode': args.mode,
        'initial_measures': args.measures,
    }
    return dict_to_config(merge_configs(config_dict, overrides))


def apply_step(api: EntryAPI, step: Dict[str, Any]) -> EntryResult:
    """Run one script step against the API."""
    if not isinstance(step, dict):
        raise ValueError(f"Invalid step: {step!r}")

    if 'note' in step:
        return api.add_note(
            step['note'],
            value=step.get('value', 'quarter'),
            dotted=step.get('dotted', False),
            mode=step.get('mode')
        )
    if 'rest' in step:
        return api.add_rest(
            value=step['rest'],
            dotted=step.get('dotted', False),
            mode=step.get('mode')
        )
    if 'tone' in step:
        return api.add_tone(step['tone'])
    if 'select' in step:
        target = step['select'] or []
        return api.select(*target)
    if 'tuplet' in step:
        num_notes, in_space_of = step['tuplet']
        return api.make_tuplet(num_notes, in_space_of)
    if step.get('unmake_tuplet'):
        return api.unmake_tuplet()
    if 'tie' in step:
        tie = step['tie']
        return api.toggle_tie() if tie == 'toggle' else api.set_tie(bool(tie))
    if 'mode' in step:
        return api.set_input_mode(step['mode'])
    if step.get('undo'):
        return api.undo()
    if step.get('redo'):
        return api.redo()
    raise ValueError(f"Unknown step: {step!r}")


def format_result(number: int, result: EntryResult) -> str:
    line = f"[{number}] {result.method}: {result.status.upper()} {result.message}"
    if result.code:
        line += f" ({result.code})"
    for warning in result.details.get('warnings', []):
        line += f"\n      warning: {warning}"
    for message in result.details.get('info', []):
        line += f"\n      info: {message}"
    return line


def format_score(api: EntryAPI) -> str:
    """Render a one-line-per-measure summary of the score."""
    lines = []
    capacity = api.score.capacity
    for track_index, track in enumerate(api.score.tracks):
        lines.append(f"{track.name or f'Track {track_index + 1}'}:")
        for measure_index, measure in enumerate(track.measures):
            parts = []
            for element in measure.elements:
                label = 'rest' if element.is_rest else '+'.join(element.pitches)
                value = f"{'dotted ' if element.dotted else ''}{element.value.value}"
                if element.tuplet is not None:
                    value += f" {element.tuplet.actual}:{element.tuplet.normal}"
                tie = '~' if element.is_tied else ''
                parts.append(f"{label}({value}){tie}")
            body = ' '.join(parts) if parts else '-'
            lines.append(f"  m{measure_index + 1} [{measure.total_quants}/{capacity}] {body}")
    return '\n'.join(lines)


def run_script(args):
    """Replay an edit script and print the results."""
    config = build_config(args)
    print(f"Loading script from {args.script}...")
    steps = load_script(Path(args.script))

    api = EntryAPI(config=config)
    print(f"Score: {config.time_signature}, {config.initial_measures} measure(s), "
          f"default mode {config.default_mode}")

    failures = 0
    for number, step in enumerate(steps, start=1):
        try:
            result = apply_step(api, step)
        except (TypeError, ValueError) as e:
            logger.error(f"Step {number} is malformed: {e}")
            print(f"[{number}] invalid step: {e}")
            failures += 1
            continue
        print(format_result(number, result))
        if not result.ok:
            failures += 1

    print()
    print(format_score(api))

    if failures:
        print(f"\n{failures} step(s) failed")
        return 1
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Replay note entry scripts against an empty score"
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    run_parser = subparsers.add_parser(
        'run',
        help='Replay a YAML edit script'
    )
    run_parser.add_argument(
        'script',
        type=str,
        help='Path to YAML edit script'
    )
    run_parser.add_argument(
        '--config',
        type=str,
        help='Path to YAML configuration file'
    )
    run_parser.add_argument(
        '--time-signature',
        type=str,
        help='Time signature (default: 4/4)'
    )
    run_parser.add_argument(
        '--mode',
        type=str,
        choices=['overwrite', 'insert'],
        help='Default entry mode (default: overwrite)'
    )
    run_parser.add_argument(
        '--measures',
        type=int,
        help='Number of initial measures (default: 4)'
    )
    run_parser.set_defaults(func=run_script)

    # Parse and run
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.verbose)
    sys.exit(args.func(args))


if __name__ == '__main__':
    main()
