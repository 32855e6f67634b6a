"""Telemetry Classification — presentation-only tiers derived from raw telemetry.

Invariants:
    - Tiers are never persisted; the DB stores raw numbers only
    - Pure thresholds, no hysteresis
"""

from chargewatch.core.domain_types import ChargingSpeedTier, SafetyTier


SLOW_MAX_KW = 7
NORMAL_MAX_KW = 22
FAST_MAX_KW = 50

SAFE_BELOW_C = 45
WARM_BELOW_C = 55
# Readings at or above this are sensor noise, not a real charging temperature.
SENSOR_CEILING_C = 100


def classify_charging_speed(max_power_kw: float | None) -> ChargingSpeedTier | None:
    if not max_power_kw:
        return None
    if max_power_kw <= SLOW_MAX_KW:
        return ChargingSpeedTier.SLOW
    if max_power_kw <= NORMAL_MAX_KW:
        return ChargingSpeedTier.NORMAL
    if max_power_kw <= FAST_MAX_KW:
        return ChargingSpeedTier.FAST
    return ChargingSpeedTier.ULTRA_FAST


def classify_safety(max_temp_c: float | None) -> SafetyTier | None:
    if not max_temp_c or max_temp_c >= SENSOR_CEILING_C:
        return None
    if max_temp_c < SAFE_BELOW_C:
        return SafetyTier.SAFE
    if max_temp_c < WARM_BELOW_C:
        return SafetyTier.WARM
    return SafetyTier.HOT
