"""Current identity endpoint."""

from fastapi import APIRouter

from portal.api.deps import CurrentExperience
from portal.core.responses import DataResponse
from portal.services.authorization import default_authorization

router = APIRouter()


@router.get("")
async def get_me(experience: CurrentExperience) -> DataResponse[dict]:
    """Identity, roles and permissions of the caller."""
    identity = experience.identity
    authorization = experience.authorization or default_authorization()
    return DataResponse(
        data={
            "id": identity.id,
            "email": identity.email,
            "display_name": identity.display_name,
            "avatar_url": identity.avatar_url,
            "provider": identity.auth_provider,
            "is_onboarding_complete": experience.store.is_onboarding_complete,
            **authorization.to_dict(),
        }
    )
