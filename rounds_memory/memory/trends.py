"""
Vital Trend Analysis

Percent change from baseline plus a metric-aware severity tag per vital.
Creatinine and oxygen support are judged on rises over baseline, while
temperature and white count use absolute thresholds.
"""

import math
from dataclasses import dataclass
from typing import Optional

from rounds_memory.schemas.memory import TrendSeverity, VitalReading, VitalSeries


# Creatinine: percent rise over baseline
CREATININE_CRITICAL_PCT = 50.0
CREATININE_CONCERNING_PCT = 25.0
CREATININE_WATCH_PCT = 10.0

# Oxygen support, liters per minute
OXYGEN_HIGH_SUPPORT_LITERS = 4.0

# Temperature, Fahrenheit
FEVER_F = 100.5
LOW_GRADE_F = 99.5

# White blood cell count, K/uL
WBC_ELEVATED = 12.0
WBC_WATCH = 10.0

# Any other vital: absolute percent change
GENERIC_CHANGE_PCT = 20.0

# Decimal places kept in percent change, so 0.6/1.2 compares as exactly 50%
PCT_PRECISION = 6


@dataclass
class TrendSummary:
    """Trend of one vital series relative to its baseline."""
    name: str
    baseline: VitalReading
    current: VitalReading
    previous: Optional[VitalReading]
    pct_change: Optional[float]
    severity: Optional[TrendSeverity]
    reading_count: int
    baseline_evicted: bool = False

    @property
    def is_single_reading(self) -> bool:
        return self.reading_count == 1 and not self.baseline_evicted


class TrendAnalyzer:
    """Computes baseline-relative change and severity for vital series."""

    @staticmethod
    def percent_change(baseline: float, current: float) -> Optional[float]:
        """Percent change from baseline; None when the baseline is zero."""
        if baseline == 0:
            return None
        return round(((current - baseline) / baseline) * 100, PCT_PRECISION)

    def classify(
        self,
        vital_name: str,
        baseline: float,
        current: float,
        pct_change: Optional[float],
        previous: Optional[float] = None,
    ) -> Optional[TrendSeverity]:
        """
        Severity for the current value of a vital.

        Args:
            vital_name: Canonical vital name (matched on substrings)
            baseline: First reading of the series
            current: Latest reading
            pct_change: Percent change from baseline, None if undefined
            previous: Reading immediately before current, if any

        Returns:
            Severity tag, or None when nothing is noteworthy
        """
        name = vital_name.lower()
        pct = pct_change if pct_change is not None and math.isfinite(pct_change) else 0.0

        if "creatinine" in name:
            return self._classify_creatinine(baseline, current, pct)
        elif "oxygen" in name:
            return self._classify_oxygen_support(baseline, current)
        elif "temp" in name:
            return self._classify_temperature(current)
        elif "wbc" in name or "white" in name:
            return self._classify_white_count(current, previous)

        if abs(pct) > GENERIC_CHANGE_PCT:
            return TrendSeverity.SIGNIFICANT_CHANGE
        return None

    def analyze(self, series: VitalSeries) -> Optional[TrendSummary]:
        """Summarize a series; None if it holds no readings."""
        if not series.readings:
            return None

        baseline = series.baseline_reading
        current = series.readings[-1]
        if len(series.readings) > 1:
            previous = series.readings[-2]
        elif series.baseline_evicted:
            previous = baseline
        else:
            previous = None

        pct = self.percent_change(baseline.value, current.value)
        evicted = series.baseline_evicted
        count = len(series.readings) + (1 if evicted else 0)

        # Absolute thresholds (fever, high O2 support) apply to a lone reading too
        severity = self.classify(
            series.name,
            baseline.value,
            current.value,
            pct,
            previous=previous.value if previous is not None else None,
        )

        return TrendSummary(
            name=series.name,
            baseline=baseline,
            current=current,
            previous=previous,
            pct_change=pct,
            severity=severity,
            reading_count=count,
            baseline_evicted=evicted,
        )

    # ==========================================================================
    # Per-metric policies
    # ==========================================================================

    def _classify_creatinine(self, baseline: float, current: float, pct: float) -> Optional[TrendSeverity]:
        if current <= baseline:
            return None
        if pct > CREATININE_CRITICAL_PCT:
            return TrendSeverity.CRITICAL
        if pct > CREATININE_CONCERNING_PCT:
            return TrendSeverity.CONCERNING
        if pct > CREATININE_WATCH_PCT:
            return TrendSeverity.WATCH
        return None

    def _classify_oxygen_support(self, baseline: float, current: float) -> Optional[TrendSeverity]:
        if current >= OXYGEN_HIGH_SUPPORT_LITERS:
            return TrendSeverity.HIGH_SUPPORT
        if current > baseline:
            return TrendSeverity.INCREASING
        return None

    def _classify_temperature(self, current: float) -> Optional[TrendSeverity]:
        if current >= FEVER_F:
            return TrendSeverity.FEVER
        if current >= LOW_GRADE_F:
            return TrendSeverity.LOW_GRADE
        return None

    def _classify_white_count(self, current: float, previous: Optional[float]) -> Optional[TrendSeverity]:
        if current > WBC_ELEVATED:
            return TrendSeverity.ELEVATED
        if current > WBC_WATCH:
            return TrendSeverity.WATCH
        if previous is not None and current > previous:
            return TrendSeverity.REBOUND
        return None
