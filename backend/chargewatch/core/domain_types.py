"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - StationId, SessionId, VehicleId, UserVehicleId wrap UUIDs; UserId wraps the
      auth collaborator's opaque id
    - All valid states encoded as Enums — no raw string matching
    - TrustPolicy is frozen: policy thresholds never mutate mid-computation

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

StationId = NewType("StationId", UUID)
SessionId = NewType("SessionId", UUID)
UserId = NewType("UserId", str)
VehicleId = NewType("VehicleId", UUID)
UserVehicleId = NewType("UserVehicleId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class VoteCategory(str, Enum):
    """Community verification vote. Declaration order is the tie-break order."""
    WORKING = "WORKING"
    BUSY = "BUSY"
    NOT_WORKING = "NOT_WORKING"


class ReportStatus(str, Enum):
    WORKING = "WORKING"
    NOT_WORKING = "NOT_WORKING"


class ReportReason(str, Enum):
    BUSY = "BUSY"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    ACCESS_ISSUE = "ACCESS_ISSUE"
    NOT_FOUND = "NOT_FOUND"


class ReviewStatus(str, Enum):
    """Admin review outcome for a report."""
    OPEN = "open"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    CONFIRMED_WORKING = "confirmed_working"
    CONFIRMED_BROKEN = "confirmed_broken"


class StationStatus(str, Enum):
    """Manually-set operational status — maps to DB `status` column."""
    OPERATIONAL = "OPERATIONAL"
    MAINTENANCE = "MAINTENANCE"
    OFFLINE = "OFFLINE"


class ApprovalStatus(str, Enum):
    """Moderation state of a submitted station. Only APPROVED is public."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ChargerType(str, Enum):
    AC = "AC"
    DC = "DC"
    BOTH = "BOTH"


class StationTrustLevel(str, Enum):
    """Long-horizon station trust. LOW stations are hidden from default listings."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    TRUSTED = "TRUSTED"


class UserTrustLevel(str, Enum):
    NEW = "NEW"
    NORMAL = "NORMAL"
    TRUSTED = "TRUSTED"


class SessionState(str, Enum):
    """Charging session lifecycle: ACTIVE -> ENDED, never re-opened."""
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class DisplayStatus(str, Enum):
    """Externally visible station status composed by the aggregator."""
    WORKING = "WORKING"
    BUSY = "BUSY"
    NOT_WORKING = "NOT_WORKING"
    MAINTENANCE = "MAINTENANCE"


class ChargingSpeedTier(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"
    ULTRA_FAST = "ultra_fast"


class SafetyTier(str, Enum):
    SAFE = "safe"
    WARM = "warm"
    HOT = "hot"


class TrustEventKind(str, Enum):
    """User trust adjustments — persisted so reward windows survive restarts."""
    VERIFICATION_REWARD = "verification_reward"
    CONTRADICTION_PENALTY = "contradiction_penalty"
    REPORT_REWARD = "report_reward"


# ─── Policy ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class TrustPolicy:
    """Thresholds for the trust engine. Built from Settings in the shell."""
    recency_window_hours: float = 24.0
    verified_min_votes: int = 2
    strong_verified_min_votes: int = 5
    consensus_min_votes: int = 3
    trust_horizon_days: int = 30
    low_trust_report_threshold: int = 3
    trusted_corroboration_threshold: int = 5
