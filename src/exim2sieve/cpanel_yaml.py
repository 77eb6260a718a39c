"""
Loader for cPanel's declarative ``filter.yaml`` representation.

    filter:
      - filtername: Nixpal
        enabled: 1
        rules:
          - part: "$header_from:"
            match: contains
            val: foo
            opt: or
        actions:
          - action: save
            dest: "$home/mail/example.com/chris/.Nixpal"
    version: '2.2'
"""

import logging

import yaml

from .model import Action, FilterEntry, FilterSet, Rule

logger = logging.getLogger(__name__)


class FilterLoadError(ValueError):
    """The filter document could not be read as a cPanel filter record."""


def _text(value, default=""):
    if value is None:
        return default
    return str(value)


def _enabled(value):
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    s = str(value).strip().lower()
    if s in ("0", "false", "no", "off", ""):
        return False
    return True


def _rule_from_record(item):
    return Rule(
        part=_text(item.get('part')),
        match=_text(item.get('match')),
        val=_text(item.get('val')),
        opt=_text(item.get('opt'), "or") or "or",
    )


def _action_from_record(item):
    dest = item.get('dest')
    return Action(
        action=_text(item.get('action')),
        dest=None if dest is None else str(dest),
    )


def _items(record, key, owner):
    items = record.get(key) or []
    if not isinstance(items, list):
        logger.warning("Ignoring %s of %s: expected a list, got %s", key, owner, type(items).__name__)
        return []
    good = []
    for item in items:
        if isinstance(item, dict):
            good.append(item)
        else:
            logger.warning("Skipping malformed %s item in %s: %r", key, owner, item)
    return good


def filter_set_from_record(record):
    """Maps an already deserialized filter record onto a FilterSet."""
    if record is None:
        return FilterSet()
    if not isinstance(record, dict):
        raise FilterLoadError(f"expected a mapping at top level, got {type(record).__name__}")

    entries = []
    for item in _items(record, 'filter', 'filter set'):
        name = _text(item.get('filtername'))
        entries.append(FilterEntry(
            name=name,
            enabled=_enabled(item.get('enabled')),
            rules=[_rule_from_record(r) for r in _items(item, 'rules', repr(name))],
            actions=[_action_from_record(a) for a in _items(item, 'actions', repr(name))],
        ))

    return FilterSet(entries=entries, version=_text(record.get('version')))


def parse_filter_yaml(content):
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise FilterLoadError(f"invalid filter YAML: {e}") from e
    return filter_set_from_record(data)


def load_filter_yaml(path, encoding='utf-8'):
    with open(path, 'r', encoding=encoding, errors='replace') as f:
        return parse_filter_yaml(f.read())
