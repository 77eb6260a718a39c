"""
Structural check of generated Sieve text.

Not a full RFC 5228 parser: it tokenizes the script and checks what the
generator could get wrong (quoting, bracket balance, require placement, one
``if`` block per active filter).
"""

import logging

logger = logging.getLogger(__name__)

PUNCTUATION = ',;(){}[]'
CLOSERS = {')': '(', '}': '{', ']': '['}


class SieveSyntaxError(ValueError):
    pass


def tokenize_sieve(text):
    """Splits Sieve text into tokens. Comments are dropped."""
    tokens = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c.isspace():
            i += 1
            continue

        # hash comment
        if c == '#':
            while i < n and text[i] != '\n':
                i += 1
            continue

        # bracket comment
        if text.startswith('/*', i):
            end = text.find('*/', i + 2)
            if end == -1:
                raise SieveSyntaxError(f"unterminated comment at offset {i}")
            i = end + 2
            continue

        # quoted string
        if c == '"':
            start = i
            i += 1
            while i < n and text[i] != '"':
                if text[i] == '\\':
                    i += 1
                i += 1
            if i >= n:
                raise SieveSyntaxError(f"unterminated string at offset {start}")
            i += 1
            tokens.append(text[start:i])
            continue

        if c in PUNCTUATION:
            tokens.append(c)
            i += 1
            continue

        # identifier / tag / number
        start = i
        while i < n and not text[i].isspace() and text[i] not in PUNCTUATION and text[i] not in '"#':
            if text.startswith('/*', i):
                break
            i += 1
        tokens.append(text[start:i])
    return tokens


def _command_starts(tokens):
    # indexes of tokens that begin a top-level command
    depth = 0
    expect = True
    for idx, tok in enumerate(tokens):
        if expect and depth == 0:
            yield idx
        expect = False
        if tok == '{':
            depth += 1
        elif tok == '}':
            depth -= 1
            expect = depth == 0
        elif tok == ';' and depth == 0:
            expect = True


def check_script(content):
    """Returns a list of problems; empty when the script looks sound."""
    try:
        tokens = tokenize_sieve(content)
    except SieveSyntaxError as e:
        return [str(e)]

    problems = []
    stack = []
    for tok in tokens:
        if tok in '({[' and len(tok) == 1:
            stack.append(tok)
        elif tok in CLOSERS:
            if not stack or stack[-1] != CLOSERS[tok]:
                problems.append(f"unbalanced '{tok}'")
                return problems
            stack.pop()
    if stack:
        problems.append(f"unclosed '{stack[-1]}'")
        return problems

    seen_command = False
    for idx in _command_starts(tokens):
        name = tokens[idx].lower()
        if name == 'require':
            if seen_command:
                problems.append("require after the first command")
        else:
            seen_command = True

    return problems


def count_if_blocks(content):
    tokens = tokenize_sieve(content)
    return sum(1 for idx in _command_starts(tokens) if tokens[idx].lower() == 'if')


def verify_conversion(filter_set, script):
    """
    Checks a combined script against the FilterSet it came from: the text
    must be structurally sound and contain one ``if`` block for every
    enabled entry that has rules.
    """
    problems = check_script(script.content)
    if problems:
        for p in problems:
            logger.error("Verification failed for %s: %s", script.name, p)
        return False

    expected = sum(1 for e in filter_set if e.enabled and e.rules)
    actual = count_if_blocks(script.content)
    if expected != actual:
        logger.error("Verification failed for %s: %d if blocks, expected %d",
                     script.name, actual, expected)
        return False

    logger.debug("Verification passed for %s (%d filters)", script.name, actual)
    return True
