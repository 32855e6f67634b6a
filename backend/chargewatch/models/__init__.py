"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Station is the aggregate root for votes and reports; sessions reference it

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from chargewatch.models.station import Station  # noqa: F401
from chargewatch.models.verification_vote import VerificationVote  # noqa: F401
from chargewatch.models.report import Report  # noqa: F401
from chargewatch.models.charging_session import ChargingSession  # noqa: F401
from chargewatch.models.user import User  # noqa: F401
from chargewatch.models.trust_event import TrustEvent  # noqa: F401
from chargewatch.models.vehicle import Vehicle  # noqa: F401
from chargewatch.models.user_vehicle import UserVehicle  # noqa: F401
