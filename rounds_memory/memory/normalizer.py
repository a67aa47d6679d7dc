"""
Medical Term Normalizer

Collapses the many ways a term reaches us (clinical synonyms, abbreviations,
speech-to-text mishears) onto one canonical identifier, so "bronch", "BAL",
"Bronchoscopy" and "the Bronx" are all remembered as the same thing.

Rules are evaluated top to bottom and the first match wins, so declaration
order is part of the contract.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_HOURLY = re.compile(r"(?:\d\s*|\bper\s+|/)hrs?\b")


@dataclass(frozen=True)
class TermRule:
    """One canonicalization rule.

    phrases match anywhere in the lowered term; words only match whole tokens,
    for short abbreviations that would otherwise hit inside longer words
    ("bal" in "balance", "cr" in "across"). A term matching `unless` never
    matches the rule.
    """
    canonical: str
    phrases: tuple[str, ...] = ()
    words: tuple[str, ...] = ()
    resolve: Optional[Callable[[str], str]] = field(default=None, compare=False)
    unless: Optional[re.Pattern] = field(default=None, compare=False)

    def matches(self, text: str, tokens: frozenset[str]) -> bool:
        if self.unless is not None and self.unless.search(text):
            return False
        return any(p in text for p in self.phrases) or any(w in tokens for w in self.words)

    def canonical_for(self, text: str) -> str:
        if self.resolve is not None:
            return self.resolve(text)
        return self.canonical


def _rejection_grade(text: str) -> str:
    if "a1" in text or "grade 1" in text:
        return "acute_rejection_a1"
    if "a2" in text or "grade 2" in text:
        return "acute_rejection_a2"
    if "a3" in text or "grade 3" in text:
        return "acute_rejection_a3"
    return "acute_rejection"


def _oxygen_device(text: str) -> str:
    if "high flow" in text:
        return "high_flow_oxygen"
    if "bipap" in text:
        return "bipap"
    if "cpap" in text:
        return "cpap"
    return "supplemental_oxygen"


# =============================================================================
# RULES (priority order)
# =============================================================================

TERM_RULES: list[TermRule] = [
    TermRule(
        canonical="bronchoscopy",
        phrases=(
            "bronch", "bronchoalveolar lavage", "bronchial wash",
            # speech-to-text / autocorrect mishears
            "bronx", "broncs", "bronk", "bronco",
        ),
        words=("bal",),
    ),
    TermRule(
        canonical="immunosuppression",
        phrases=("immunosuppression", "immune suppression", "anti-rejection", "antirejection", "anti rejection"),
    ),
    TermRule(
        canonical="acute_rejection",
        phrases=("rejection", "grade a1", "grade a2", "grade a3"),
        words=("acr",),
        resolve=_rejection_grade,
    ),
    TermRule(
        canonical="pleural_effusion",
        phrases=("pleural effusion", "effusion", "fluid in lung", "fluid around lung", "chest fluid"),
    ),
    TermRule(
        canonical="tacrolimus",
        phrases=(
            "tacrolimus", "prograf", "tac level", "fk506", "fk-506",
            # mishears
            "tack level", "tack row", "tacro",
        ),
        words=("tac", "tack"),
    ),
    TermRule(
        canonical="creatinine",
        phrases=("creatinine", "cr level", "kidney function"),
        words=("creat", "cr"),
    ),
    TermRule(
        canonical="chest_xray",
        phrases=("chest x-ray", "chest x ray", "chest xray", "chest film", "chest radiograph"),
        words=("cxr",),
    ),
    TermRule(
        canonical="ct_scan",
        phrases=("ct scan", "ct chest", "cat scan", "computed tomography", "ct imaging"),
    ),
    TermRule(
        canonical="pneumonia",
        phrases=("pneumonia", "lung infection", "pulmonary infection"),
        words=("pna",),
    ),
    TermRule(
        canonical="mechanical_ventilation",
        phrases=("intubated", "intubation", "on the vent", "ventilator", "mechanical ventilation"),
    ),
    TermRule(
        canonical="extubation",
        phrases=("extubated", "extubation", "off the vent", "breathing on own", "breathing on his own", "breathing on her own"),
    ),
    TermRule(
        canonical="spo2",
        phrases=("oxygen saturation", "o2 sat", "spo2", "pulse ox"),
        words=("sats",),
    ),
    TermRule(
        canonical="supplemental_oxygen",
        phrases=("nasal cannula", "high flow", "bipap", "cpap", "supplemental oxygen", "supplemental o2", "oxygen flow", "o2 flow"),
        resolve=_oxygen_device,
    ),
    TermRule(
        canonical="room_air",
        phrases=("room air",),
    ),
    TermRule(
        canonical="urine_output",
        phrases=("urine output", "urine"),
        words=("uop",),
    ),
    TermRule(
        canonical="heart_rate",
        phrases=(
            "heart rate", "heartrate", "pulse",
            # mishears
            "hard rate", "heart right",
        ),
        words=("hr", "bpm"),
        # "hr" as an hour ("24 hr", "ml/hr", "per hr")
        unless=_HOURLY,
    ),
    TermRule(
        canonical="wbc",
        phrases=("white blood cell", "white count", "white cell count"),
        words=("wbc",),
    ),
    TermRule(
        canonical="temperature",
        phrases=("temperature",),
        words=("temp",),
    ),
]


class TermNormalizer:
    """Maps free-text medical terms to canonical identifiers."""

    def __init__(self, rules: Optional[list[TermRule]] = None):
        self.rules = list(rules) if rules is not None else TERM_RULES

    def normalize(self, term: Optional[str]) -> str:
        """
        Canonicalize a term.

        Never raises; an unmapped term comes back lower-cased with internal
        whitespace collapsed to underscores.
        """
        if not term:
            return ""
        lowered = term.lower().strip()
        if not lowered:
            return ""

        # Canonical ids use underscores; read them as spaces so they route
        # back to their own rule.
        text = " ".join(lowered.replace("_", " ").split())
        tokens = frozenset(t for t in _TOKEN_SPLIT.split(text) if t)

        for rule in self.rules:
            if rule.matches(text, tokens):
                return rule.canonical_for(text)

        return "_".join(lowered.split())

    def normalize_and_dedupe(self, terms: Iterable[str]) -> set[str]:
        """Normalize every term and drop duplicates (order not kept)."""
        return {n for n in (self.normalize(t) for t in terms) if n}

    def normalize_unique(self, terms: Iterable[str]) -> list[str]:
        """Normalize and drop duplicates, keeping first-occurrence order."""
        return list(dict.fromkeys(n for n in (self.normalize(t) for t in terms) if n))
