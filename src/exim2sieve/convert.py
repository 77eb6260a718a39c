import argparse
import logging
import os
import sys
from pathlib import Path

from .combine import combine_scripts
from .config import load_config
from .cpanel_yaml import FilterLoadError, load_filter_yaml
from .exim_filter import parse_filter_file
from .generator import compile_filter_set
from .verify import verify_conversion
from .writer import write_scripts

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')

# cPanel keeps one filter per mailbox directory: etc/<domain>/<localpart>/filter
GENERIC_FILTER_NAMES = ('filter', 'filter.yaml', 'filter.yml')


def setup_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def load_filter_file(path, encoding='utf-8'):
    """Reads either representation; YAML is picked by file extension."""
    path = Path(path)
    if path.suffix.lower() in YAML_SUFFIXES:
        return load_filter_yaml(path, encoding)
    return parse_filter_file(path, encoding)


def default_script_name(path):
    path = Path(path)
    if path.name.lower() in GENERIC_FILTER_NAMES and path.parent.name:
        return path.parent.name
    return path.stem


def convert_filter_set(filter_set, name):
    return combine_scripts(name, compile_filter_set(filter_set))


def convert_filter_file(path, name=None, encoding='utf-8'):
    filter_set = load_filter_file(path, encoding)
    return convert_filter_set(filter_set, name or default_script_name(path))


def main(argv=None):
    parser = argparse.ArgumentParser(description='Convert a cPanel Exim filter (filter or filter.yaml) to Sieve.')
    parser.add_argument('filter_file', help='Path to filter or filter.yaml')
    parser.add_argument('--name', help='Script name (default: mailbox directory or file name)')
    parser.add_argument('--output-dir', help='Write <name>.sieve into this directory instead of printing')
    parser.add_argument('--skip-verify', action='store_true', help='Skip the consistency check of the generated script')
    parser.add_argument('--config', help='Path to exim2sieve.yaml')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    config = load_config(Path(args.config) if args.config else None)
    setup_logging("DEBUG" if args.verbose else config.log_level)

    if not os.path.exists(args.filter_file):
        logger.error("File not found: %s", args.filter_file)
        return 1

    try:
        filter_set = load_filter_file(args.filter_file, config.encoding)
    except (OSError, FilterLoadError) as e:
        logger.error("Cannot load %s: %s", args.filter_file, e)
        return 1

    if not len(filter_set):
        logger.warning("No usable filters in %s", args.filter_file)
        return 0

    script = convert_filter_set(filter_set, args.name or default_script_name(args.filter_file))

    if config.verify and not args.skip_verify:
        logger.info("Performing consistency check...")
        if not verify_conversion(filter_set, script):
            logger.error("Output generation aborted due to verification failure.")
            return 1

    if args.output_dir:
        write_scripts([script], args.output_dir)
    else:
        sys.stdout.write(script.content)
    return 0


if __name__ == '__main__':
    sys.exit(main())
