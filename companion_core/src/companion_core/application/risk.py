"""
Neuro-health risk derived from a window of PM2.5 samples.

The assessment is a pure function of the window: the mean concentration
(cumulative exposure) picks the risk level through the breakpoints of a
``RiskPolicy``, and the percentage blends that exposure with the share of
samples above the threshold.
"""

from dataclasses import dataclass
from typing import Iterable, Union

from companion_core.domain.models import Reading, RiskAssessment, RiskLevel


@dataclass(frozen=True)
class RiskPolicy:
    threshold: float = 35.0
    low_below: float = 12.0
    moderate_max: float = 35.0
    high_max: float = 55.0
    saturation: float = 75.0
    exposure_weight: float = 0.6

    @classmethod
    def from_settings(cls, settings) -> "RiskPolicy":
        return cls(
            threshold=settings.RISK_THRESHOLD,
            low_below=settings.RISK_LOW_BELOW,
            moderate_max=settings.RISK_MODERATE_MAX,
            high_max=settings.RISK_HIGH_MAX,
            saturation=settings.RISK_SATURATION,
            exposure_weight=settings.RISK_EXPOSURE_WEIGHT,
        )

    def level_for(self, exposure: float) -> RiskLevel:
        if exposure < self.low_below:
            return RiskLevel.LOW
        if exposure <= self.moderate_max:
            return RiskLevel.MODERATE
        if exposure <= self.high_max:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL


DEFAULT_POLICY = RiskPolicy()


def _pm25(sample: Union[Reading, dict, float]) -> float:
    if isinstance(sample, Reading):
        return sample.pm25
    if isinstance(sample, dict):
        return float(sample["pm25"])
    return float(sample)


def assess_risk(
    window: Iterable[Union[Reading, dict, float]], policy: RiskPolicy = DEFAULT_POLICY
) -> RiskAssessment:
    values = [_pm25(s) for s in window]
    if not values:
        return RiskAssessment(
            level=RiskLevel.LOW, percentage=0.0, cumulative_exposure=0.0, time_above_threshold=0.0
        )

    exposure = sum(values) / len(values)
    above = 100.0 * sum(1 for v in values if v > policy.threshold) / len(values)

    exposure_index = min(100.0, 100.0 * exposure / policy.saturation)
    percentage = policy.exposure_weight * exposure_index + (1 - policy.exposure_weight) * above

    return RiskAssessment(
        level=policy.level_for(exposure),
        percentage=max(0.0, min(100.0, percentage)),
        cumulative_exposure=exposure,
        time_above_threshold=above,
    )
