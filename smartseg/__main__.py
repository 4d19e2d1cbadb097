"""
Main entry point for smartseg.

Segments a customer CSV (or a generated sample) and prints a JSON summary.
"""

import argparse
import json
import logging
import sys
import pandas as pd
from typing import List, Optional

from smartseg.components.config import ConfigManager, load_config_file, to_list
from smartseg.data.loader import SAMPLE_FEATURES, generate_sample, read_table, write_labeled, write_profiles
from smartseg.errors import InvalidConfiguration
from smartseg.segmentation import Segmentation

logger = logging.getLogger('smartseg')

# Features preselected for generated sample data
SAMPLE_DEFAULT_FEATURES = SAMPLE_FEATURES[:3]

# --sample given without a count
SAMPLE_ROWS_FROM_CONFIG = -1


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def non_negative_int(value: str) -> int:
    """Parse a command line count that may be zero."""
    count = int(value)
    if count < 0:
        raise argparse.ArgumentTypeError(f"expected a count of 0 or more, got {value}")
    return count


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Arguments (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='SmartSeg customer segmentation')

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--input',
        help='Path to a customer CSV file'
    )
    source.add_argument(
        '--sample',
        type=non_negative_int,
        nargs='?',
        const=SAMPLE_ROWS_FROM_CONFIG,
        help='Generate a synthetic sample of this many customers (default from config)'
    )

    parser.add_argument(
        '--features',
        help='Comma-separated feature columns'
    )

    parser.add_argument(
        '-k', '--clusters',
        type=int,
        dest='k',
        help='Number of segments'
    )

    parser.add_argument(
        '--max-iters',
        type=int,
        help='Maximum K-means iterations'
    )

    parser.add_argument(
        '--seed',
        type=int,
        help='Random seed'
    )

    parser.add_argument(
        '--id-column',
        help='Column holding customer ids'
    )

    parser.add_argument(
        '--output',
        help='Write the labeled table to this CSV file'
    )

    parser.add_argument(
        '--profile-output',
        help='Write segment profiles to this CSV file'
    )

    parser.add_argument(
        '--rows',
        action='store_true',
        help='Include per-row labels and projection points in the JSON output'
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (defaults to logging.level from config)'
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv: Arguments (defaults to sys.argv)

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    # Create overrides from arguments
    try:
        overrides = load_config_file(args.config) if args.config else {}

        if args.max_iters is not None:
            overrides.setdefault('segmentation', {})['max-iters'] = args.max_iters

        if args.seed is not None:
            overrides.setdefault('random', {})['seed'] = args.seed

        config = ConfigManager.get_config(overrides)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    setup_logging(args.log_level or logging.getLevelName(config.log_level()))

    if args.input:
        try:
            table = read_table(args.input)
        except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            logger.error(f"Cannot read {args.input}: {e}")
            return 2
        id_column = args.id_column
    else:
        rows = config.get('sample.rows') if args.sample == SAMPLE_ROWS_FROM_CONFIG else args.sample
        table = generate_sample(rows, config.get('random.seed'))
        id_column = args.id_column or 'CustomerID'

    features = to_list(args.features)
    if not features and args.input is None and not config.get('segmentation.features'):
        features = SAMPLE_DEFAULT_FEATURES

    try:
        segmentation = Segmentation(table, features, args.k, config, id_column)
        result = segmentation.run()
    except InvalidConfiguration as e:
        logger.error(f"Cannot segment: {e}")
        return 2

    if args.output:
        write_labeled(table, result.labels, args.output)

    if args.profile_output:
        write_profiles(result.profiles, args.profile_output, result.features)

    json.dump(result.to_dict(include_rows=args.rows), sys.stdout, indent=2)
    sys.stdout.write('\n')
    return 0


if __name__ == '__main__':
    sys.exit(main())
