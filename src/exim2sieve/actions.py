"""
Compiles filter Actions into Sieve statements.
"""

import logging

from .conditions import comment_text, quote_string

logger = logging.getLogger(__name__)

ACTION_EXTENSIONS = {
    "save": "fileinto",
    "deliver": "fileinto",
    "reject": "reject",
}


def _kind(action):
    return (action.action or "").strip().lower()


def mailbox_from_dest(dest):
    """
    Mailbox name for a cPanel save path, e.g.
    ``$home/mail/example.com/chris/.Nixpal`` -> ``Nixpal``.
    """
    if not dest:
        return "INBOX"
    base = dest.rsplit('/', 1)[-1].strip()
    base = base[1:] if base.startswith('.') else base
    return base or dest


def required_extensions(actions):
    return {ACTION_EXTENSIONS[_kind(a)] for a in actions if _kind(a) in ACTION_EXTENSIONS}


def compile_action(action):
    """Returns the (unindented) Sieve lines for one Action."""
    kind = _kind(action)
    dest = action.dest or ""

    if kind == "save":
        return [
            f"fileinto {quote_string(mailbox_from_dest(dest))};",
            f"# original path: {comment_text(quote_string(dest))}",
        ]
    if kind == "deliver":
        return [f"fileinto {quote_string(dest)};"]
    if kind == "reject":
        return [f"reject {quote_string(dest)};"]
    if kind == "finish":
        # stop at the end of the block does the same
        return ["# finish: stop processing (handled by stop)"]

    logger.debug("Unsupported action %r dest=%r", action.action, action.dest)
    return [f"# unsupported action {comment_text(quote_string(action.action or ''))} "
            f"dest={comment_text(quote_string(dest))}"]
