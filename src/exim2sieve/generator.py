"""
Builds one Sieve script per filter entry.
"""

import logging

from .actions import compile_action, required_extensions
from .conditions import compile_conditions, quote_string
from .model import SieveScript

logger = logging.getLogger(__name__)

INDENT = "    "
COMMENT_PREFIX = "# "


def require_line(extensions):
    return "require [" + ", ".join(quote_string(e) for e in sorted(extensions)) + "];"


def comment_out(content, enabled_flag=0):
    """Turns a whole script into comments, keeping blank lines blank."""
    lines = [f"{COMMENT_PREFIX}NOTE: this filter was disabled in cPanel (enabled={enabled_flag})"]
    for line in content.split("\n"):
        lines.append(COMMENT_PREFIX + line if line.strip() else "")
    return "\n".join(lines)


def _entry_body(entry):
    if not entry.rules:
        return "# Filter has no rules; nothing to match.\n"

    cond, uses_body = compile_conditions(entry.rules)

    extensions = required_extensions(entry.actions)
    if uses_body:
        extensions.add("body")

    out = []
    if extensions:
        out.append(require_line(extensions))
        out.append("")

    out.append(f"if {cond} {{")
    if not entry.actions:
        out.append(INDENT + "# no actions defined in original filter")
    for action in entry.actions:
        out.extend(INDENT + line for line in compile_action(action))
    out.append(INDENT + "stop;")
    out.append("}")

    return "\n".join(out) + "\n"


def compile_filter_entry(entry):
    content = _entry_body(entry)
    if not entry.enabled:
        logger.debug("Filter %r is disabled; emitting it commented out", entry.name)
        content = comment_out(content)
    return SieveScript(name=entry.name, content=content)


def compile_filter_set(filter_set):
    """Compiles every entry of a FilterSet, in order."""
    return [compile_filter_entry(entry) for entry in filter_set]
