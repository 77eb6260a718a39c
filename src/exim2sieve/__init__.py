"""
exim2sieve - cPanel Exim filter -> Sieve rule converter

Converts cPanel mailbox filters (the Exim ``filter`` text file or its
``filter.yaml`` record) into Sieve (RFC 5228) scripts, one combined script
per mailbox.
"""

__version__ = "1.0.0"

from .model import (
    Rule,
    Action,
    FilterEntry,
    FilterSet,
    SieveScript,
)

from .exim_filter import (
    parse_filter_content,
    parse_filter_file,
)

from .cpanel_yaml import (
    FilterLoadError,
    filter_set_from_record,
    parse_filter_yaml,
    load_filter_yaml,
)

from .generator import (
    compile_filter_entry,
    compile_filter_set,
)

from .combine import combine_scripts

from .verify import verify_conversion

from .writer import write_scripts

__all__ = [
    "Rule",
    "Action",
    "FilterEntry",
    "FilterSet",
    "SieveScript",
    "parse_filter_content",
    "parse_filter_file",
    "FilterLoadError",
    "filter_set_from_record",
    "parse_filter_yaml",
    "load_filter_yaml",
    "compile_filter_entry",
    "compile_filter_set",
    "combine_scripts",
    "verify_conversion",
    "write_scripts",
]
