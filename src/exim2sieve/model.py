"""
Neutral rule model shared by both filter parsers and the Sieve generator.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Rule:
    """One atomic condition, e.g. ``$header_from: contains "foo"``."""
    part: str
    match: str
    val: str = ""
    opt: str = "or"


@dataclass(frozen=True)
class Action:
    """One atomic effect: save, deliver, reject, finish or anything else."""
    action: str
    dest: Optional[str] = None


@dataclass(frozen=True)
class FilterEntry:
    name: str
    enabled: bool = True
    rules: Tuple[Rule, ...] = field(default_factory=tuple)
    actions: Tuple[Action, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "actions", tuple(self.actions))


@dataclass(frozen=True)
class FilterSet:
    """All filter entries of one source file. ``version`` is informational."""
    entries: Tuple[FilterEntry, ...] = field(default_factory=tuple)
    version: str = ""

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)


@dataclass(frozen=True)
class SieveScript:
    name: str
    content: str
