"""
Command line interface for batch superpixel segmentation.
"""

import argparse
import sys

from loguru import logger

from configs.default_config import (
    BATCH_CONFIG,
    DEFAULT_BINS,
    DEFAULT_METHOD,
    DEFAULT_MIN_SEGMENT_SIZE,
    DEFAULT_SPLIT_THRESHOLD,
    OUTPUT_DIR,
    RECURSIVE_SEARCH,
    SUMMARY_DIR,
    VISUALIZATION_DIR,
)
from .config import RunConfiguration
from .exceptions import ConfigurationError, WriteError
from .pipeline import SuperpixelBatch
from .traditional import SuperpixelSegmenterFactory
from .utils.log_config import configure_logging


def build_parser():
    parser = argparse.ArgumentParser(description='Multi-scale superpixel segmentation of an image directory')
    parser.add_argument('input_positional', nargs='?', metavar='input',
                        help='The folder to process (same as --input)')
    parser.add_argument('-i', '--input', type=str,
                        help='The folder to process')
    parser.add_argument('-s', '--superpixels', type=int, nargs='+', default=[],
                        help='Numbers of superpixels, one label map is written per number')
    parser.add_argument('-t', '--splitThreshold', type=float, default=DEFAULT_SPLIT_THRESHOLD,
                        help='Minimum stddev * histogram width a segment needs to be split')
    parser.add_argument('--nrgb', action='store_true',
                        help='Do not use the RGB channels')
    parser.add_argument('--nhsv', action='store_true',
                        help='Do not use the HSV channels')
    parser.add_argument('--nlab', action='store_true',
                        help='Do not use the LAB channels')
    parser.add_argument('--blur', action='store_true',
                        help='Apply a Gaussian blur to the channels')
    parser.add_argument('-b', '--bins', type=int, default=DEFAULT_BINS,
                        help='Number of histogram bins')
    parser.add_argument('-m', '--minSize', type=int, default=DEFAULT_MIN_SEGMENT_SIZE,
                        help='Minimum size of segments in pixels')
    parser.add_argument('-o', '--csv', type=str, default=OUTPUT_DIR,
                        help='Output directory for the CSV label files (disabled if empty)')
    parser.add_argument('-v', '--vis', type=str, default=VISUALIZATION_DIR,
                        help='Output directory for contour visualizations (disabled if empty)')
    parser.add_argument('-x', '--prefix', type=str, default='',
                        help='Output file prefix')
    parser.add_argument('-w', '--wordy', action='store_true',
                        help='Verbose/wordy/debug output')
    parser.add_argument('--method', type=str, default=DEFAULT_METHOD,
                        choices=sorted(SuperpixelSegmenterFactory.SEGMENTERS),
                        help='Superpixel algorithm')
    parser.add_argument('--workers', type=int, default=BATCH_CONFIG['workers'],
                        help=f"Number of parallel processes (up to {BATCH_CONFIG['max_workers']} recommended)")
    parser.add_argument('--recursive', action='store_true', default=RECURSIVE_SEARCH,
                        help='Also process images in subdirectories')
    parser.add_argument('--strict-writes', action='store_true', default=BATCH_CONFIG['strict_writes'],
                        help='Abort the batch on the first failed write')
    parser.add_argument('--summary', type=str, default=SUMMARY_DIR,
                        help='Output directory for per-image multi-scale overview figures')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write a detailed log to this file')
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.input is None:
        args.input = args.input_positional
    if not args.input:
        parser.error('an input folder is required')
    return args


def main(argv=None):
    config = RunConfiguration.from_args(parse_args(argv))
    configure_logging(verbose=config.verbose, log_file=config.log_file)

    try:
        report = SuperpixelBatch(config).run()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except WriteError as e:
        logger.error(f"Aborting batch: {e}")
        return 2

    return 0 if report.failed == 0 else 3


if __name__ == '__main__':
    sys.exit(main())
