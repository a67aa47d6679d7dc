"""
Context Builder

Compiles the complete patient memory into the text block that primes every
model call. Nothing is truncated: every session and every reading in memory
appears in the output, and the Day 1 baseline always comes first so trends
can be judged against it.
"""

import logging
from collections import Counter
from typing import Mapping, Optional, Sequence, Union

from rounds_memory.memory.normalizer import TermNormalizer
from rounds_memory.memory.trends import TrendAnalyzer, TrendSummary
from rounds_memory.schemas.memory import (
    PatientMemory,
    PatientProfile,
    SessionMemory,
    VitalReading,
    VitalSeries,
)

logger = logging.getLogger(__name__)

RECURRING_MIN_COUNT = 2
URGENT_MIN_COUNT = 3
TRAIL_SEPARATOR = " → "
EVICTED_GAP = "…"


def format_value(value: float) -> str:
    """Whole numbers without a decimal point, anything else to one place."""
    if value == round(value):
        return str(int(round(value)))
    return f"{value:.1f}"


def format_pct(pct: float) -> str:
    sign = "+" if pct >= 0 else ""
    return f"{sign}{int(pct)}%"


def format_reading(reading: VitalReading) -> str:
    text = reading.raw or format_value(reading.value)
    unit = reading.unit
    if not unit:
        return text
    if unit[0] in "%°":
        return f"{text}{unit}"
    return f"{text} {unit}"


class ContextBuilder:
    """Renders patient memory into a deterministic, full-history context block."""

    def __init__(
        self,
        normalizer: Optional[TermNormalizer] = None,
        analyzer: Optional[TrendAnalyzer] = None,
    ):
        self.normalizer = normalizer or TermNormalizer()
        self.analyzer = analyzer or TrendAnalyzer()

    def build_context(
        self,
        sessions: Sequence[SessionMemory],
        facts: Sequence[str],
        vital_series: Mapping[str, Union[VitalSeries, Sequence[VitalReading]]],
        concerns: Sequence[str],
        current_condition: Optional[str] = None,
        profile: Optional[PatientProfile] = None,
        baseline_evicted: bool = False,
        emotional_notes: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Build the full context string.

        Args:
            sessions: Every session, oldest first; the first is the baseline
            facts: Every learned fact
            vital_series: Canonical vital name -> series (or plain reading list)
            concerns: Every concern occurrence (not deduplicated)
            current_condition: Optional one-line status
            profile: Optional onboarding profile for the header
            baseline_evicted: The baseline session was pinned after leaving
                the rolling session log
            emotional_notes: Optional notes on how the caregiver is coping

        Returns:
            The context block; empty string when there is nothing to say
        """
        sections: list[str] = []

        if profile is not None:
            header = self._profile_section(profile)
            if header:
                sections.append(header)

        if sessions:
            sections.append(self._baseline_section(sessions[0], baseline_evicted))

        trends = self._trend_section(vital_series)
        if trends:
            sections.append(trends)

        fact_block = self._facts_section(facts)
        if fact_block:
            sections.append(fact_block)

        recurring = self._recurring_concerns_section(concerns)
        if recurring:
            sections.append(recurring)

        emotional = self._emotional_notes_section(emotional_notes or ())
        if emotional:
            sections.append(emotional)

        if len(sessions) > 1:
            sections.append(self._history_section(sessions))

        if current_condition and current_condition.strip():
            sections.append(f"CURRENT STATUS: {current_condition.strip()}")

        return "\n\n".join(sections)

    def build_from_memory(self, memory: PatientMemory) -> str:
        """Build the context for a whole memory snapshot."""
        context = self.build_context(
            sessions=memory.context_sessions(),
            facts=memory.facts,
            vital_series=memory.vitals,
            concerns=memory.concerns,
            current_condition=memory.current_condition,
            profile=memory.profile,
            baseline_evicted=memory.baseline_evicted,
            emotional_notes=memory.emotional_notes,
        )
        logger.debug(f"Built context: {len(context)} chars, ~{self.estimate_tokens(context)} tokens")
        return context

    @staticmethod
    def estimate_tokens(text: str) -> int:
        # Rough approximation: 4 chars = 1 token
        return len(text) // 4

    # ==========================================================================
    # Sections
    # ==========================================================================

    def _profile_section(self, profile: PatientProfile) -> str:
        lines = []
        if profile.patient_name:
            lines.append(f"PATIENT: {profile.patient_name}")
        if profile.caregiver_name:
            caregiver = profile.caregiver_name
            if profile.relationship:
                caregiver += f" ({profile.relationship})"
            lines.append(f"Caregiver: {caregiver}")
        if profile.diagnosis:
            lines.append(f"Diagnosis: {profile.diagnosis}")
        if profile.surgery_date:
            lines.append(f"Surgery date: {profile.surgery_date.isoformat()}")
        if profile.admission_date:
            lines.append(f"Admission date: {profile.admission_date.isoformat()}")
        if profile.medications:
            lines.append(f"Medications: {', '.join(profile.medications)}")
        if profile.care_team:
            lines.append(f"Care team: {', '.join(profile.care_team)}")
        if profile.allergies:
            lines.append(f"Allergies: {', '.join(profile.allergies)}")
        return "\n".join(lines)

    def _baseline_section(self, session: SessionMemory, evicted: bool) -> str:
        lines = ["DAY 1 BASELINE (anchor point for all comparisons):"]
        date_line = f"Date: {session.date_formatted}"
        if session.day_number is not None:
            date_line += f" (Day {session.day_number})"
        lines.append(date_line)
        if evicted:
            lines.append("Note: sessions between this baseline and the history below are no longer retained.")

        for point in session.key_points:
            lines.append(f"  - {point}")

        if session.medical_values:
            lines.append("  Baseline values:")
            for name, value in session.medical_values.items():
                lines.append(f"    - {name}: {value}")

        return "\n".join(lines)

    def _trend_section(
        self, vital_series: Mapping[str, Union[VitalSeries, Sequence[VitalReading]]]
    ) -> str:
        series_list = [self._as_series(name, s) for name, s in vital_series.items()]
        lines = []
        for series in sorted(series_list, key=lambda s: s.name):
            summary = self.analyzer.analyze(series)
            if summary is None:
                continue
            lines.append(self._trend_line(series, summary))

        if not lines:
            return ""
        return "\n".join(["VITAL SIGN TRENDS (full history):"] + lines)

    def _as_series(
        self, name: str, series: Union[VitalSeries, Sequence[VitalReading]]
    ) -> VitalSeries:
        if isinstance(series, VitalSeries):
            return series
        return VitalSeries(
            name=self.normalizer.normalize(name) or name,
            label=name,
            readings=list(series),
        )

    def _trend_line(self, series: VitalSeries, summary: TrendSummary) -> str:
        label = series.label or series.name
        tag = f" [{summary.severity.value}]" if summary.severity else ""

        if summary.is_single_reading:
            return f"- {label}: {format_reading(summary.current)} (baseline, single reading){tag}"

        trail = [format_reading(r) for r in series.readings]
        if summary.baseline_evicted:
            trail = [format_reading(summary.baseline), EVICTED_GAP] + trail

        if summary.pct_change is None:
            change = "change from Day 1 n/a, baseline 0"
        else:
            change = f"{format_pct(summary.pct_change)} from Day 1"

        return f"- {label}: {TRAIL_SEPARATOR.join(trail)} ({change}){tag}"

    def _facts_section(self, facts: Sequence[str]) -> str:
        normalized = self.normalizer.normalize_unique(facts)
        if not normalized:
            return ""
        lines = [f"ALL MEDICAL FACTS LEARNED ({len(normalized)} total):"]
        lines.extend(f"- {fact}" for fact in normalized)
        return "\n".join(lines)

    def _recurring_concerns_section(self, concerns: Sequence[str]) -> str:
        counts = Counter(c for c in (self.normalizer.normalize(x) for x in concerns) if c)
        recurring = sorted(
            ((concern, count) for concern, count in counts.items() if count >= RECURRING_MIN_COUNT),
            key=lambda item: (-item[1], item[0]),
        )
        if not recurring:
            return ""

        lines = ["RECURRING CONCERNS (mentioned multiple times):"]
        for concern, count in recurring:
            flag = "URGENT" if count >= URGENT_MIN_COUNT else "RECURRING"
            lines.append(f"[{flag}] {concern}: mentioned {count}x")
        return "\n".join(lines)

    def _emotional_notes_section(self, notes: Sequence[str]) -> str:
        kept = [note.strip() for note in notes if note and note.strip()]
        if not kept:
            return ""
        return "\n".join(["CAREGIVER EMOTIONAL NOTES:"] + [f"- {note}" for note in kept])

    def _history_section(self, sessions: Sequence[SessionMemory]) -> str:
        lines = [f"SESSION HISTORY (sessions 2-{len(sessions)}):"]

        for session in sessions[1:]:
            heading = f"[{session.date_formatted}"
            if session.day_number is not None:
                heading += f" - Day {session.day_number}"
            lines.append("")
            lines.append(heading + "]")

            for point in session.key_points:
                lines.append(f"  - {point}")

            if session.medical_values:
                values = ", ".join(f"{name}: {value}" for name, value in session.medical_values.items())
                lines.append(f"  Values: {values}")

            session_concerns = [c for c in (self.normalizer.normalize(x) for x in session.concerns) if c]
            if session_concerns:
                lines.append(f"  Concerns: {'; '.join(session_concerns)}")

            if session.next_steps:
                lines.append(f"  Next steps: {'; '.join(session.next_steps)}")

        return "\n".join(lines)
