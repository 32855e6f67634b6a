"""User Routes — public reputation badge."""

from fastapi import APIRouter, Depends

from chargewatch.api.deps import get_trust_service
from chargewatch.services.trust import TrustService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/{user_id}/trust-level")
async def get_user_trust_level(
    user_id: str, service: TrustService = Depends(get_trust_service),
):
    level = await service.user_trust_level(user_id)
    return {"user_id": user_id, "trust_level": level.value}
