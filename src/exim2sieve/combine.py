"""
Merges the per-filter scripts of one mailbox into a single script.

All ``require [...]`` lines are collected into one sorted require at the
top; the filter bodies follow in their original order, each introduced by
a ``# Filter: <name>`` comment.
"""

import logging

from .conditions import comment_text
from .generator import require_line
from .model import SieveScript

logger = logging.getLogger(__name__)


def parse_require(line):
    """``require ["fileinto", "reject"];`` -> ['fileinto', 'reject']"""
    start = line.find('[')
    end = line.find(']')
    if start == -1 or end == -1 or end < start:
        return []
    names = []
    for token in line[start + 1:end].split(','):
        token = token.strip().strip('"')
        if token:
            names.append(token)
    return names


def _strip_blank_edges(lines):
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def combine_scripts(name, scripts):
    extensions = set()
    chunks = []

    for script in scripts:
        body = []
        for line in script.content.split("\n"):
            if line.strip().startswith("require ["):
                extensions.update(parse_require(line.strip()))
                continue
            body.append(line)

        body = _strip_blank_edges(body)
        if not body:
            logger.debug("Skipping empty script %r", script.name)
            continue

        chunks.append(f"# Filter: {comment_text(script.name)}")
        chunks.extend(body)
        chunks.append("")

    out = ""
    if extensions:
        out += require_line(extensions) + "\n\n"
    out += "\n".join(chunks)

    return SieveScript(name=name, content=out)
