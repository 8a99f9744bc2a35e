"""Summary: Built-in school list and keyword rules.

Importance: Provides the static configuration the scanner and classifier run against.
Alternatives: Require users to author every school and rule by hand.
"""

from __future__ import annotations

import json
from pathlib import Path

from admitwatch.models import (
    ACCEPTANCE,
    ACTION_REQUIRED,
    REJECTION,
    WAITLIST,
    KeywordRule,
    School,
)


def default_schools() -> list[School]:
    """Summary: Return the built-in school list in scan order.

    Importance: Gives a working configuration out of the box.
    Alternatives: Ship an empty list and fail until configured.
    """

    return [
        School(key="ucb", domain="berkeley.edu", name="UC Berkeley", short_name="Berkeley", school_type="UC"),
        School(key="ucla", domain="ucla.edu", name="UCLA", short_name="UCLA", school_type="UC"),
        School(key="ucsd", domain="ucsd.edu", name="UC San Diego", short_name="UCSD", school_type="UC"),
        School(key="ucsb", domain="ucsb.edu", name="UC Santa Barbara", short_name="UCSB", school_type="UC"),
        School(key="uci", domain="uci.edu", name="UC Irvine", short_name="UCI", school_type="UC"),
        School(key="ucd", domain="ucdavis.edu", name="UC Davis", short_name="Davis", school_type="UC"),
        School(key="usc", domain="usc.edu", name="University of Southern California", short_name="USC", school_type="Private"),
        School(key="sjsu", domain="sjsu.edu", name="San Jose State University", short_name="SJSU", school_type="CSU"),
    ]


def default_keyword_rules() -> list[KeywordRule]:
    """Summary: Return the built-in keyword rules in evaluation order.

    Importance: Rule order is the tie-break order for equal scores.
    Alternatives: Sort rules by threshold or name before scoring.
    """

    return [
        KeywordRule(
            category=ACCEPTANCE,
            subject_keywords=("congratulations", "admitted", "accepted", "offer of admission", "welcome to the class"),
            body_keywords=("pleased to offer", "offer you admission", "you have been admitted", "welcome to the class", "statement of intent to register"),
            min_score=0.5,
        ),
        KeywordRule(
            category=REJECTION,
            subject_keywords=("regret", "unable to offer", "not been selected"),
            body_keywords=("regret to inform", "unable to offer", "not able to offer", "cannot offer you admission", "not been selected"),
            min_score=0.5,
        ),
        KeywordRule(
            category=WAITLIST,
            subject_keywords=("waitlist", "wait list", "waiting list"),
            body_keywords=("waitlist", "wait list", "alternate list", "opt in to the waitlist"),
            min_score=0.5,
        ),
        KeywordRule(
            category=ACTION_REQUIRED,
            subject_keywords=("action required", "reminder", "deadline", "submit", "tau", "missing", "required"),
            body_keywords=("due by", "deadline", "please submit", "please complete", "transfer academic update", "must be received"),
            min_score=0.3,
        ),
    ]


def load_schools(path: Path) -> list[School]:
    """Summary: Load a school list from a JSON file.

    Importance: Lets users track their own set of institutions.
    Alternatives: Edit the built-in list in code.
    """

    if not path.exists():
        raise FileNotFoundError(f"Schools file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    return [
        School(
            key=item["key"],
            domain=item["domain"],
            name=item.get("name", item["key"]),
            short_name=item.get("short_name", item.get("name", item["key"])),
            school_type=item.get("type", ""),
        )
        for item in data
    ]


def load_keyword_rules(path: Path) -> list[KeywordRule]:
    """Summary: Load keyword rules from a JSON file, keeping file order."""

    if not path.exists():
        raise FileNotFoundError(f"Keyword rules file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    return [
        KeywordRule(
            category=item["category"],
            subject_keywords=tuple(keyword.lower() for keyword in item.get("subject_keywords", [])),
            body_keywords=tuple(keyword.lower() for keyword in item.get("body_keywords", [])),
            min_score=float(item.get("min_score", 0.0)),
        )
        for item in data
    ]
