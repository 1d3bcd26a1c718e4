"""
Sentence segmentation for progressive speech synthesis.
"""

import re
from typing import List


_SENTENCE = re.compile(r"[^.!?]+[.!?]+\s*")


def segment(text: str) -> List[str]:
    """
    Split text into speakable sentence units.

    A unit is a run of non-terminal characters followed by one or more
    of '.', '!' or '?'. Text left over after the last terminal
    punctuation becomes one final unit. Units are trimmed and never empty.

    Args:
        text: Arbitrary input text

    Returns:
        Sentence units in input order; empty only for blank input

    Examples:
        >>> segment("Hello there. How are you")
        ['Hello there.', 'How are you']
    """
    if not text:
        return []

    units: List[str] = []
    end = 0
    for match in _SENTENCE.finditer(text):
        # stray punctuation between units ends the scan; it stays in the remainder
        if match.start() != end:
            break
        unit = match.group().strip()
        if unit:
            units.append(unit)
        end = match.end()

    remainder = text[end:].strip()
    if remainder:
        units.append(remainder)

    return units
