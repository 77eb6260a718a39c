"""
Parser for cPanel-generated Exim filter files (``etc/<domain>/<user>/filter``).

Handles the subset cPanel actually writes::

    #Nixpal
    if
     $header_from: contains "foo"
     or $header_subject: begins "WHMCS"
    then
     deliver "\\"$local_part+Nixpal\\"@$domain"
     finish
    endif

Nested ifs, ``error_message`` handling and the rest of the Exim grammar are
ignored. Malformed blocks are dropped instead of raising.
"""

import logging
import re
from enum import Enum

from .model import Action, FilterEntry, FilterSet, Rule

logger = logging.getLogger(__name__)

# cPanel preamble, skipped wherever it appears
BOILERPLATE_PREFIXES = (
    "# Exim filter",
    "# Do not manually",
    "headers charset",
    "if not first_delivery",
)

LOCAL_PART_MARKER = "$local_part+"

# "not $header_x: contains ..." spelled with Exim's negated operator names
NEGATED_OPERATORS = {
    "contains": "does not contain",
    "is": "is not",
    "begins": "does not begin",
    "ends": "does not end",
    "matches": "does not match",
}


class ParserState(Enum):
    SCANNING = "scanning"
    IN_CONDITION = "in_condition"
    IN_ACTION = "in_action"


def extract_first_quoted(s):
    """
    Returns the first double-quoted string in ``s`` with backslash escapes
    resolved, or None if there is no complete quoted string.
    """
    start = s.find('"')
    if start == -1:
        return None
    res = []
    i = start + 1
    while i < len(s):
        c = s[i]
        if c == '\\' and i + 1 < len(s):
            res.append(s[i + 1])
            i += 2
            continue
        if c == '"':
            return "".join(res)
        res.append(c)
        i += 1
    return None


def _find_join(s):
    # index of the first " or " / " and " outside a quoted string
    lower = s.lower()
    in_quote = False
    i = 0
    while i < len(s):
        c = s[i]
        if in_quote:
            if c == '\\':
                i += 2
                continue
            if c == '"':
                in_quote = False
        elif c == '"':
            in_quote = True
        elif lower.startswith(" or ", i) or lower.startswith(" and ", i):
            return i
        i += 1
    return len(s)


def _parse_clause(expr, opt):
    negate = False
    if expr.lower().startswith("not "):
        negate = True
        expr = expr[4:].strip()

    quote = expr.find('"')
    colon = expr.find(':', 0, quote if quote != -1 else len(expr))
    if colon == -1:
        return None
    part = expr[:colon + 1].strip()
    rest = expr[colon + 1:].strip()

    val = extract_first_quoted(rest)
    if val is None:
        return None

    match = " ".join(rest[:rest.find('"')].lower().split())
    if negate:
        match = NEGATED_OPERATORS.get(match, "not " + match)

    return Rule(part=part, match=match, val=val, opt=opt)


def parse_conditions(text):
    """
    Splits the joined condition region into Rules.

    ``$header_from: contains "foo" or $header_subject: begins "WHMCS"``
    gives two rules; the first is always tagged ``or``, later ones carry the
    keyword that introduced them.
    """
    rules = []
    s = text.strip()
    first = True

    while s:
        opt = "or"
        if not first:
            lower = s.lower()
            if lower.startswith("or "):
                s = s[3:].strip()
            elif lower.startswith("and "):
                opt = "and"
                s = s[4:].strip()
        first = False
        if not s:
            break

        cut = _find_join(s)
        expr = s[:cut].strip()
        s = s[cut:].strip()

        rule = _parse_clause(expr, opt)
        if rule is None:
            logger.debug("Skipping unparseable condition: %s", expr)
            continue
        rules.append(rule)

    return rules


def parse_actions(lines):
    acts = []

    for line in lines:
        line = line.strip()
        if not line:
            continue
        lower = line.lower()

        if lower.startswith("finish"):
            acts.append(Action("finish"))
        elif lower.startswith("deliver "):
            arg = extract_first_quoted(line)
            if not arg:
                continue
            if LOCAL_PART_MARKER in arg:
                # deliver "\"$local_part+Nixpal\"@$domain" -> mailbox Nixpal
                rest = arg[arg.index(LOCAL_PART_MARKER) + len(LOCAL_PART_MARKER):]
                name = re.split(r'["@]', rest, maxsplit=1)[0].strip()
                if name:
                    acts.append(Action("save", name))
            else:
                acts.append(Action("deliver", arg))
        elif lower.startswith("save "):
            arg = extract_first_quoted(line)
            if arg:
                acts.append(Action("save", arg))
        else:
            logger.debug("Ignoring unsupported action line: %s", line)

    return acts


def _commit(block, entries):
    if block is None:
        return
    name = block['name']
    if not name:
        logger.debug("Dropping filter block without a name")
        return

    rules = parse_conditions(" ".join(block['conditions']))
    actions = parse_actions(block['actions'])
    if not rules or not actions:
        logger.debug("Dropping filter %r: %d rules, %d actions", name, len(rules), len(actions))
        return

    entries.append(FilterEntry(name=name, enabled=True, rules=rules, actions=actions))


def _new_block(name):
    return {'name': name, 'conditions': [], 'actions': []}


def parse_filter_content(content):
    entries = []
    state = ParserState.SCANNING
    block = None

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(BOILERPLATE_PREFIXES):
            continue

        if state is ParserState.SCANNING:
            if line.startswith('#'):
                _commit(block, entries)
                block = _new_block(line[1:].strip())
            elif line.startswith('if'):
                if block is None:
                    block = _new_block("")
                rest = line[2:].strip()
                if rest:
                    block['conditions'].append(rest)
                state = ParserState.IN_CONDITION

        elif state is ParserState.IN_CONDITION:
            if line.startswith('then'):
                state = ParserState.IN_ACTION
            else:
                block['conditions'].append(line)

        elif state is ParserState.IN_ACTION:
            if line.startswith('endif'):
                _commit(block, entries)
                block = None
                state = ParserState.SCANNING
            else:
                block['actions'].append(line)

    # file may end without endif
    _commit(block, entries)

    return FilterSet(entries=entries, version="text")


def parse_filter_file(path, encoding='utf-8'):
    with open(path, 'rb') as f:
        content = f.read().decode(encoding, errors='replace')
    return parse_filter_content(content)
