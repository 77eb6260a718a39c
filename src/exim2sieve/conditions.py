"""
Compiles filter Rules into Sieve test expressions.

Several rules are joined with ONE operator for the whole entry: ``allof``
when every join marker is ``and``, ``anyof`` otherwise. Mixed and/or
precedence is not representable in the rule model and collapses to
``anyof``.

Forms that cannot be translated still produce a test so conversion always
completes:

* regex operators, and ``matches`` patterns that are not simple anchors,
  become ``false /* ... */`` (the filter never fires);
* operators missing from MATCH_OPERATORS, or an empty value, become
  ``true /* ... */`` (the filter always fires).

A filter with a ``true`` placeholder fires on every message; review any
script that contains one.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

logger = logging.getLogger(__name__)

REGEX_META = set('.*+?[]()|\\')

UNSUPPORTED_REGEX_MATCHES = ("matches_regex", "does not match")

PART_PREFIXES = ("$header_", "$h_", "header_", "h_", "$")


class FieldKind(Enum):
    HEADER = "header"
    ADDRESS = "address"
    BODY = "body"


@dataclass(frozen=True)
class Field:
    kind: FieldKind
    headers: Tuple[str, ...] = ()

    def test_name(self, comparator):
        # exact compares look at the address only; substring and wildcard
        # compares see the whole header, display name included
        if self.kind is FieldKind.ADDRESS and comparator == ":is":
            return "address"
        return "header"

    def header_expr(self):
        if len(self.headers) == 1:
            return quote_string(self.headers[0])
        return "[" + ", ".join(quote_string(h) for h in self.headers) + "]"


_FROM = Field(FieldKind.ADDRESS, ("From",))
_TO = Field(FieldKind.ADDRESS, ("To",))
_SUBJECT = Field(FieldKind.HEADER, ("Subject",))
_ANY_RECIPIENT = Field(FieldKind.ADDRESS, ("To", "Cc", "Bcc"))
_REPLY_TO = Field(FieldKind.HEADER, ("Reply-To",))
_BODY = Field(FieldKind.BODY)
_ANY_HEADER = Field(FieldKind.HEADER, ("From", "To", "Cc", "Bcc", "Subject", "Reply-To"))

FIELD_MAP = {
    "from": _FROM,
    "to": _TO,
    "subject": _SUBJECT,
    "any recipient": _ANY_RECIPIENT,
    "any_recipient": _ANY_RECIPIENT,
    "anyrecipient": _ANY_RECIPIENT,
    "reply": _REPLY_TO,
    "reply-to": _REPLY_TO,
    "reply_to": _REPLY_TO,
    "body": _BODY,
    "message_body": _BODY,
    "any header": _ANY_HEADER,
    "any_header": _ANY_HEADER,
    "anyheader": _ANY_HEADER,
    "message_headers": _ANY_HEADER,
}

# match keyword -> (comparator, negated, pattern template)
MATCH_OPERATORS = {
    "contains": (":contains", False, "{}"),
    "does not contain": (":contains", True, "{}"),
    "does not contains": (":contains", True, "{}"),
    "equals": (":is", False, "{}"),
    "is": (":is", False, "{}"),
    "does not equal": (":is", True, "{}"),
    "is not": (":is", True, "{}"),
    "begins": (":matches", False, "{}*"),
    "begins with": (":matches", False, "{}*"),
    "does not begin": (":matches", True, "{}*"),
    "does not begin with": (":matches", True, "{}*"),
    "ends": (":matches", False, "*{}"),
    "ends with": (":matches", False, "*{}"),
    "does not end": (":matches", True, "*{}"),
    "does not end with": (":matches", True, "*{}"),
}


def quote_string(s):
    """Sieve quoted-string (RFC 5228 2.4.2)."""
    return '"' + s.replace('\\', '\\\\').replace('"', '\\"') + '"'


def glob_escape(s):
    return s.replace('\\', '\\\\').replace('*', '\\*').replace('?', '\\?')


def comment_text(s):
    """Makes ``s`` safe inside a ``/* */`` or ``#`` comment."""
    return " ".join(s.replace('*/', '* /').split())


def simple_regex_to_glob(pattern):
    """
    Converts an anchored literal into a ``:matches`` glob::

        ^Suspended:   -> Suspended:*
        ^Suspended:$  -> Suspended:
        Suspended:$   -> *Suspended:

    Returns None for anything carrying regex metacharacters or no anchor.
    """
    if not pattern or any(c in REGEX_META for c in pattern):
        return None

    starts = pattern.startswith('^')
    ends = pattern.endswith('$')
    core = pattern[1 if starts else 0:len(pattern) - 1 if ends else len(pattern)]
    if not core or not (starts or ends):
        return None

    if starts and ends:
        return core
    if starts:
        return core + "*"
    return "*" + core


def _normalize_part(part):
    p = part.strip().lower()
    for prefix in PART_PREFIXES:
        if p.startswith(prefix):
            p = p[len(prefix):]
            break
    if p.endswith(':'):
        p = p[:-1]
    return p.strip()


def map_part(part):
    p = _normalize_part(part)
    if p in FIELD_MAP:
        return FIELD_MAP[p]
    if not p:
        return _SUBJECT
    # unknown part: treat as a header name
    return Field(FieldKind.HEADER, ("-".join(w.capitalize() for w in p.split('-')),))


def map_match(match, val):
    """Returns (comparator, negated, pattern) or None when unsupported."""
    if not val:
        return None
    entry = MATCH_OPERATORS.get(match)
    if entry is None:
        return None
    comparator, negated, template = entry
    if comparator == ":matches":
        val = glob_escape(val)
    return comparator, negated, template.format(val)


def _describe(rule):
    return comment_text(f"{rule.part} {rule.match} {quote_string(rule.val)}")


def _render_test(field, comparator, pattern):
    if field.kind is FieldKind.BODY:
        return f"body {comparator} {quote_string(pattern)}"
    return f"{field.test_name(comparator)} {comparator} {field.header_expr()} {quote_string(pattern)}"


def compile_condition(rule):
    """Compiles one Rule. Returns (test, uses_body)."""
    match = rule.match.strip().lower()

    if match in UNSUPPORTED_REGEX_MATCHES:
        logger.debug("Regex rule replaced by false: %s", _describe(rule))
        return f"false /* regex rule ignored: {_describe(rule)} */", False

    if match == "matches":
        glob = simple_regex_to_glob(rule.val)
        if glob is None:
            logger.debug("Unsupported matches pattern replaced by false: %s", _describe(rule))
            return f"false /* unsupported match: {_describe(rule)} */", False
        field = map_part(rule.part)
        return _render_test(field, ":matches", glob), field.kind is FieldKind.BODY

    mapped = map_match(match, rule.val)
    if mapped is None:
        logger.debug("Unsupported operator replaced by true: %s", _describe(rule))
        return f"true /* unsupported match: {_describe(rule)} */", False

    comparator, negated, pattern = mapped
    field = map_part(rule.part)
    cond = _render_test(field, comparator, pattern)
    if negated:
        cond = f"not ({cond})"
    return cond, field.kind is FieldKind.BODY


def join_operator(rules):
    has_and = False
    has_or = False
    for r in rules:
        opt = (r.opt or "").strip().lower()
        if opt == "and":
            has_and = True
        elif opt in ("or", ""):
            has_or = True
    return "allof" if has_and and not has_or else "anyof"


def compile_conditions(rules):
    """
    Compiles the rules of one filter entry. Returns (expression, uses_body).

        anyof (
            header :contains "Subject" "foo",
            address :is "From" "a@b.com"
        )
    """
    rules = list(rules)
    if not rules:
        return "false", False
    if len(rules) == 1:
        return compile_condition(rules[0])

    conds = []
    uses_body = False
    for r in rules:
        c, body = compile_condition(r)
        conds.append(c)
        uses_body = uses_body or body

    joined = ",\n    ".join(conds)
    return f"{join_operator(rules)} (\n    {joined}\n)", uses_body
