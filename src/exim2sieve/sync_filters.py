"""
Batch conversion driven by a mapping file::

    [
      {"mailbox": "chris", "path": "/backup/home/chris/etc/example.com/chris/filter.yaml"},
      {"mailbox": "info", "path": "/backup/home/chris/etc/example.com/info/filter"}
    ]

Each mailbox gets ``<output-dir>/<mailbox>/<mailbox>.sieve``.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .config import load_config
from .convert import convert_filter_set, load_filter_file, setup_logging
from .cpanel_yaml import FilterLoadError
from .verify import verify_conversion
from .writer import write_scripts

logger = logging.getLogger(__name__)


def convert_mappings(mappings, output_dir, skip_verify=False, encoding='utf-8'):
    """Returns (converted, failed) counts. Missing files are skipped, not failed."""
    converted = 0
    failed = 0

    for entry in mappings:
        mailbox = entry['mailbox']
        filter_path = entry['path']

        if not os.path.exists(filter_path):
            logger.warning("[SKIP] Filter file not found for %s: %s", mailbox, filter_path)
            continue

        logger.info("[PROCESS] %s", mailbox)
        try:
            filter_set = load_filter_file(filter_path, encoding)
            if not len(filter_set):
                logger.warning("[SKIP] No usable filters for %s", mailbox)
                continue

            script = convert_filter_set(filter_set, mailbox)

            if not skip_verify and not verify_conversion(filter_set, script):
                logger.error("[ERROR] Verification failed for %s; not writing", mailbox)
                failed += 1
                continue

            write_scripts([script], Path(output_dir) / mailbox)
            converted += 1

        except (OSError, FilterLoadError) as e:
            logger.error("[ERROR] Failed to convert %s: %s", mailbox, e)
            failed += 1

    return converted, failed


def main(argv=None):
    parser = argparse.ArgumentParser(description='Batch convert cPanel Exim filters to Sieve.')
    parser.add_argument('mappings', help='JSON list of {"mailbox": ..., "path": ...}')
    parser.add_argument('--output-dir', help='Destination folder for sieve scripts')
    parser.add_argument('--skip-verify', action='store_true', help='Skip the consistency check of generated scripts')
    parser.add_argument('--config', help='Path to exim2sieve.yaml')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    config = load_config(Path(args.config) if args.config else None)
    setup_logging("DEBUG" if args.verbose else config.log_level)

    if not os.path.exists(args.mappings):
        logger.error("Mapping file not found: %s", args.mappings)
        return 1

    with open(args.mappings, 'r', encoding='utf-8') as f:
        mappings = json.load(f)

    converted, failed = convert_mappings(
        mappings,
        args.output_dir or config.output_dir,
        skip_verify=args.skip_verify or not config.verify,
        encoding=config.encoding,
    )
    logger.info("Converted %d mailboxes, %d failed", converted, failed)
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
