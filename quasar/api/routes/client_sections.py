"""
Public storefront API for page sections
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.responses import ResponseService
from quasar.services.section_service import SectionService

router = APIRouter(prefix="/api/sections", tags=["sections"])


@router.get("/{page}")
async def get_page_sections(
    page: str,
    locale: Optional[str] = Query(None, min_length=2, max_length=10),
    db: Session = Depends(get_db),
):
    """Enabled sections of a page, localized for `locale`"""
    return ResponseService.success(SectionService(db).list_public(page, locale))
