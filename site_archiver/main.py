#!/usr/bin/env python3
"""
Site Archiver - mirror a site's link hierarchy onto the filesystem.

Reads a YAML file of scraper definitions and, for each one, follows the
configured steps from the seed URLs down to downloadable resources.

Usage:
    python main.py scrapers.yaml

Example configuration:
    scrapers:
      - dest: out/manga
        urls: [https://example.com/series]
        domain_whitelist: [example.com]
        steps:
          - ExtractHrefsFromHTML: a.chapter
          - DownloadImage: img.page
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from site_archiver.config import ArchiverSettings, load_config
from site_archiver.crawler import SiteArchiver
from site_archiver.errors import ArchiverError, ConfigError
from site_archiver.utils.constants import (
    DEFAULT_DOWNLOAD_DELAY,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_MIN_REQUEST_DELAY,
    DEFAULT_MAX_REQUEST_DELAY,
)
from site_archiver.utils.log import (
    setup_logger,
    print_error,
    print_info,
    print_success,
)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='site-archiver',
        description='Archive hierarchical site content following configured steps',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s scrapers.yaml
    %(prog)s scrapers.yaml --download-delay 2 --log-file run.log
        """
    )

    parser.add_argument(
        'config',
        type=str,
        help='Path to the YAML configuration file'
    )

    parser.add_argument(
        '--download-delay',
        type=float,
        default=DEFAULT_DOWNLOAD_DELAY,
        help=f'Pause after every resource download in seconds (default: {DEFAULT_DOWNLOAD_DELAY})'
    )

    parser.add_argument(
        '--download-timeout',
        type=float,
        default=DEFAULT_DOWNLOAD_TIMEOUT,
        help=f'Read timeout for resource downloads in seconds (default: {DEFAULT_DOWNLOAD_TIMEOUT})'
    )

    parser.add_argument(
        '--min-request-delay',
        type=float,
        default=DEFAULT_MIN_REQUEST_DELAY,
        help=f'Minimum delay between requests to one domain (default: {DEFAULT_MIN_REQUEST_DELAY})'
    )

    parser.add_argument(
        '--max-request-delay',
        type=float,
        default=DEFAULT_MAX_REQUEST_DELAY,
        help=f'Maximum delay between requests to one domain (default: {DEFAULT_MAX_REQUEST_DELAY})'
    )

    parser.add_argument(
        '--ignore-robots',
        action='store_true',
        help='Ignore robots.txt rules'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write log lines to this file'
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    verbosity.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress output except errors'
    )

    return parser.parse_args(argv)


def print_summary(result) -> None:
    """
    Print the run summary.

    Args:
        result: ArchiveResult object
    """
    print("\n" + "=" * 60)
    print_success("ARCHIVE SUMMARY")
    print("=" * 60)
    print(f"  Scrapers:          {result.definitions}")
    print(f"  Pages processed:   {result.pages_processed}")
    print(f"  Pages failed:      {result.pages_failed}")
    print(f"  Files downloaded:  {result.files_downloaded}")
    print(f"  Files skipped:     {result.files_skipped}")
    print(f"  Files failed:      {result.files_failed}")
    print(f"  Duration:          {result.duration_seconds:.1f} seconds")
    print("=" * 60 + "\n")


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the site archiver.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_arguments(argv)

    log_level = logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else logging.INFO)
    setup_logger(level=log_level, log_file=args.log_file)
    logger = logging.getLogger("site_archiver")

    try:
        config = load_config(args.config)
        settings = ArchiverSettings(
            download_delay=args.download_delay,
            download_timeout=args.download_timeout,
            min_request_delay=args.min_request_delay,
            max_request_delay=args.max_request_delay,
            respect_robots=not args.ignore_robots
        )

        if not args.quiet:
            print_info(f"Loaded {len(config.scrapers)} scraper(s) from {os.path.abspath(args.config)}")

        result = await SiteArchiver(config.scrapers, settings).run()

        if not args.quiet:
            print_summary(result)

        return 0

    except KeyboardInterrupt:
        print_error("\nRun interrupted by user")
        return 1
    except ConfigError as e:
        print_error(f"Invalid configuration: {e}")
        return 1
    except ArchiverError as e:
        print_error(f"Error: {e}")
        logger.debug("Run aborted", exc_info=True)
        return 1
    except OSError as e:
        print_error(f"Filesystem error: {e}")
        logger.debug("Run aborted", exc_info=True)
        return 1


def run() -> None:
    """Entry point wrapper for running as module."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
