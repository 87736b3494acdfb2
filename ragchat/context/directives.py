"""Directive markers users type into chat messages."""

import re
from enum import Enum
from typing import Optional, Set


class Directive(str, Enum):
    """Markers that switch on a context enrichment step."""
    WORKSPACE = "@workspace"
    PROBLEMS = "@problems"


_DIRECTIVE_PATTERN = re.compile("|".join(re.escape(d.value) for d in Directive))


def detect_directives(text: Optional[str]) -> Set[Directive]:
    """Return the directives mentioned anywhere in ``text``."""
    if not text:
        return set()
    return {Directive(match) for match in _DIRECTIVE_PATTERN.findall(text)}


def strip_directives(text: Optional[str]) -> str:
    """Remove every directive literal, leaving surrounding whitespace intact.

    ``"fix @workspace this bug"`` becomes ``"fix  this bug"``.
    """
    if not text:
        return ""
    return _DIRECTIVE_PATTERN.sub("", text)
