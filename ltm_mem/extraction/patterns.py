# ltm_mem/extraction/patterns.py

"""
Trigger phrases per memory type.

Compiled once at import and exposed read-only. A classifier can be given a
different table, but nothing mutates this one.
"""

import re
from types import MappingProxyType
from typing import Mapping

from ..models import MemoryType

PatternTable = Mapping[MemoryType, tuple[re.Pattern[str], ...]]

_RAW_PATTERNS: dict[MemoryType, tuple[str, ...]] = {
    "semantic": (
        r"i like|i love|i enjoy|i prefer|i hate|i dislike",
        r"my favorite|my preferred|i always|i never",
        r"i am|i'm a|i work as|i study",
        # "i believe in" is a value statement, not an opinion
        r"i believe(?! in\b)|i think that|in my opinion",
    ),
    "episodic": (
        r"yesterday|today|last week|last month|when i was",
        r"i went to|i visited|i met|i did|i saw",
        r"it happened|that time when|i remember when",
        r"at \d|on monday|on tuesday|on wednesday|on thursday|on friday|on saturday|on sunday",
    ),
    "procedural": (
        r"how to|the way i|i usually|my routine|my process",
        r"step by step|first i|then i|finally i",
        r"my habit|i typically|i normally",
        r"the best way to|my approach is",
    ),
    "emotional": (
        r"i feel|i felt|i'm feeling|i was feeling",
        r"made me happy|made me sad|frustrated|excited|nervous|anxious",
        r"i'm worried|i'm concerned|i'm thrilled|i'm disappointed",
        r"emotional|feelings|mood",
    ),
    "value-principle": (
        r"i believe in|it's important to|i value|my principle",
        r"i stand for|i care about|what matters to me",
        r"my philosophy|my values|morally|ethically",
        r"right thing to do|wrong to|should always|should never",
    ),
}


def compile_patterns(raw: Mapping[MemoryType, tuple[str, ...]]) -> PatternTable:
    return MappingProxyType(
        {t: tuple(re.compile(p, re.IGNORECASE) for p in pats) for t, pats in raw.items()}
    )


DEFAULT_PATTERNS: PatternTable = compile_patterns(_RAW_PATTERNS)
