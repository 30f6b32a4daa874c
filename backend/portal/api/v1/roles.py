"""Job role catalog endpoints."""

from fastapi import APIRouter

from portal.core.responses import DataResponse
from portal.schemas.dashboard import JobRoleRead
from portal.services.role_catalog import AVAILABLE_ROLES, roles_by_category

router = APIRouter()


@router.get("")
async def list_roles() -> DataResponse[list[JobRoleRead]]:
    """Selectable roles in catalog order."""
    return DataResponse(data=[JobRoleRead.from_role(role) for role in AVAILABLE_ROLES])


@router.get("/by-category")
async def list_roles_by_category() -> DataResponse[dict[str, list[JobRoleRead]]]:
    return DataResponse(
        data={
            category: [JobRoleRead.from_role(role) for role in roles]
            for category, roles in roles_by_category().items()
        }
    )
