"""Summary: Weighted keyword classification for admissions messages.

Importance: Turns a subject and body into a decision category with a confidence score.
Alternatives: Use an LLM-based classifier for higher accuracy.
"""

from __future__ import annotations

from dataclasses import dataclass

from admitwatch.models import INFORMATIONAL, Classification, KeywordRule


@dataclass(frozen=True)
class KeywordClassifier:
    """Summary: Substring keyword scorer over an ordered rule list.

    Importance: Deterministic and cheap; rule order breaks ties between equal scores.
    Alternatives: Use a supervised ML classifier or LLM-based categorizer.
    """

    rules: tuple[KeywordRule, ...]
    subject_weight: float = 0.5
    body_weight: float = 0.25
    informational_confidence: float = 0.25
    max_confidence: float = 0.99
    body_limit: int = 2000

    def classify(self, subject: str, body: str) -> Classification:
        """Summary: Score every rule and pick the winning category.

        Importance: Feeds decision detection and the email log.
        Alternatives: Return all category scores and let callers decide.
        """

        subject_text = (subject or "").lower()
        body_text = (body or "").lower()[: self.body_limit]
        best_rule: KeywordRule | None = None
        best_score = 0.0
        for rule in self.rules:
            score = self.score(rule, subject_text, body_text)
            # strictly greater: the earlier rule keeps a tie
            if score > best_score:
                best_rule = rule
                best_score = score
        if (
            best_rule is None
            or best_score <= self.informational_confidence
            or best_score < best_rule.min_score
        ):
            return Classification(category=INFORMATIONAL, confidence=self.informational_confidence)
        confidence = min(self.max_confidence, round(best_score, 2))
        return Classification(category=best_rule.category, confidence=confidence)

    def score(self, rule: KeywordRule, subject_text: str, body_text: str) -> float:
        """Summary: Score one rule against already normalized text."""

        score = 0.0
        for keyword in rule.subject_keywords:
            if keyword in subject_text:
                score += self.subject_weight
        for keyword in rule.body_keywords:
            if keyword in body_text:
                score += self.body_weight
        return score
