"""Section table endpoint.

Lists the wizard's sections with the fields visible in the given mode:
only ESSENTIAL fields during onboarding, everything in profile mode.
"""

from fastapi import APIRouter, Query

from portal.core.errors import NotFoundError
from portal.core.responses import DataResponse
from portal.schemas.navigation import SectionRead
from portal.services.sections import get_section, section_order
from portal.services.tiers import NavigationMode

router = APIRouter()


@router.get("")
async def list_sections(
    mode: NavigationMode = Query(default=NavigationMode.PROFILE),
) -> DataResponse[list[SectionRead]]:
    """Sections in traversal order for ``mode``."""
    sections = [get_section(section_id) for section_id in section_order(mode)]
    return DataResponse(
        data=[SectionRead.from_section(section, mode) for section in sections if section]
    )


@router.get("/{section_id}")
async def get_section_detail(
    section_id: str,
    mode: NavigationMode = Query(default=NavigationMode.PROFILE),
) -> DataResponse[SectionRead]:
    section = get_section(section_id)
    if section is None:
        raise NotFoundError("Section", section_id)
    return DataResponse(data=SectionRead.from_section(section, mode))
