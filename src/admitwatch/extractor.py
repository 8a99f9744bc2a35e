"""Summary: Deadline phrase extraction for action items.

Importance: Surfaces short "submit X by March 15" style reminders per school.
Alternatives: Ask an LLM to extract tasks, as a heavier but more flexible option.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_DAY = r"\d{1,2}(?:st|nd|rd|th)?\b"
_DATE = rf"\b{_MONTH}\.?\s+{_DAY}"

DEFAULT_PATTERNS = (
    re.compile(
        r"\b(?:submit|complete|send|upload|register|confirm|accept|sign up|pay|respond|reply|update)"
        rf"[^.!?]{{0,60}}?\b(?:by|before|no later than|on)\s+{_DATE}",
        re.IGNORECASE,
    ),
    re.compile(rf"\bdeadline[^.!?]{{0,40}}?{_DATE}", re.IGNORECASE),
    re.compile(rf"\bdue\b[^.!?]{{0,25}}?{_DATE}", re.IGNORECASE),
    re.compile(rf"\b(?:by|before)\s+{_DATE}", re.IGNORECASE),
)


@dataclass(frozen=True)
class ActionItemExtractor:
    """Summary: Pattern-based extractor returning a short, capped list of phrases.

    Importance: Earlier patterns win when the cap is reached.
    Alternatives: Collect every match and rank afterwards.
    """

    patterns: tuple[re.Pattern[str], ...] = DEFAULT_PATTERNS
    text_limit: int = 3000
    matches_per_pattern: int = 2
    max_items: int = 3
    max_length: int = 80
    min_length: int = 10

    def extract(self, subject: str, body: str) -> list[str]:
        text = f"{subject or ''} {body or ''}"[: self.text_limit]
        items: list[str] = []
        for pattern in self.patterns:
            for index, match in enumerate(pattern.finditer(text)):
                if index >= self.matches_per_pattern or len(items) >= self.max_items:
                    break
                phrase = " ".join(match.group(0).split())[: self.max_length]
                if len(phrase) > self.min_length and phrase not in items:
                    items.append(phrase)
            if len(items) >= self.max_items:
                break
        return items[: self.max_items]
