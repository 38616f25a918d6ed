from fastapi import APIRouter, Depends
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.site.schemas import (
    SectionCreate, SectionUpdate, SectionResponse, SectionReorder,
    HeroBlockCreate, HeroBlockUpdate, HeroBlockResponse,
    ThemeCreate, ThemeUpdate, ThemeResponse
)
from authorhub.modules.site.service import SectionService, HeroBlockService, ThemeService
from authorhub.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/site", tags=["site"])


def get_section_service(supabase: Client = Depends(get_supabase)) -> SectionService:
    return SectionService(supabase)


def get_hero_service(supabase: Client = Depends(get_supabase)) -> HeroBlockService:
    return HeroBlockService(supabase)


def get_theme_service(supabase: Client = Depends(get_supabase)) -> ThemeService:
    return ThemeService(supabase)


# Home page sections

@router.get("/sections", response_model=List[SectionResponse])
async def list_sections(
    enabled_only: bool = False,
    user_data: Dict = Depends(require_permission("site:view")),
    service: SectionService = Depends(get_section_service)
):
    """Home page sections in display order"""
    return service.list(enabled_only=enabled_only)


@router.post("/sections", response_model=SectionResponse, status_code=201)
async def create_section(
    section_data: SectionCreate,
    user_data: Dict = Depends(require_permission("site:create")),
    service: SectionService = Depends(get_section_service)
):
    return service.create(section_data)


@router.put("/sections/order", response_model=List[SectionResponse])
async def reorder_sections(
    reorder: SectionReorder,
    user_data: Dict = Depends(require_permission("site:edit")),
    service: SectionService = Depends(get_section_service)
):
    """Reorder sections; the list position becomes order_index"""
    return service.reorder(reorder.section_ids)


@router.get("/sections/{section_id}", response_model=SectionResponse)
async def get_section(
    section_id: str,
    user_data: Dict = Depends(require_permission("site:view")),
    service: SectionService = Depends(get_section_service)
):
    return service.get(section_id)


@router.patch("/sections/{section_id}", response_model=SectionResponse)
async def update_section(
    section_id: str,
    update_data: SectionUpdate,
    user_data: Dict = Depends(require_permission("site:edit")),
    service: SectionService = Depends(get_section_service)
):
    return service.update(section_id, update_data)


@router.delete("/sections/{section_id}", status_code=204)
async def delete_section(
    section_id: str,
    user_data: Dict = Depends(require_permission("site:delete")),
    service: SectionService = Depends(get_section_service)
):
    service.delete(section_id)


# Hero blocks

@router.get("/hero-blocks", response_model=List[HeroBlockResponse])
async def list_hero_blocks(
    user_data: Dict = Depends(require_permission("site:view")),
    service: HeroBlockService = Depends(get_hero_service)
):
    return service.list()


@router.post("/hero-blocks", response_model=HeroBlockResponse, status_code=201)
async def create_hero_block(
    block_data: HeroBlockCreate,
    user_data: Dict = Depends(require_permission("site:create")),
    service: HeroBlockService = Depends(get_hero_service)
):
    return service.create(block_data)


@router.get("/hero-blocks/{block_id}", response_model=HeroBlockResponse)
async def get_hero_block(
    block_id: str,
    user_data: Dict = Depends(require_permission("site:view")),
    service: HeroBlockService = Depends(get_hero_service)
):
    return service.get(block_id)


@router.patch("/hero-blocks/{block_id}", response_model=HeroBlockResponse)
async def update_hero_block(
    block_id: str,
    update_data: HeroBlockUpdate,
    user_data: Dict = Depends(require_permission("site:edit")),
    service: HeroBlockService = Depends(get_hero_service)
):
    return service.update(block_id, update_data)


@router.delete("/hero-blocks/{block_id}", status_code=204)
async def delete_hero_block(
    block_id: str,
    user_data: Dict = Depends(require_permission("site:delete")),
    service: HeroBlockService = Depends(get_hero_service)
):
    service.delete(block_id)


# Themes

@router.get("/themes", response_model=List[ThemeResponse])
async def list_themes(
    user_data: Dict = Depends(require_permission("site:view")),
    service: ThemeService = Depends(get_theme_service)
):
    return service.list()


@router.post("/themes", response_model=ThemeResponse, status_code=201)
async def create_theme(
    theme_data: ThemeCreate,
    user_data: Dict = Depends(require_permission("site:create")),
    service: ThemeService = Depends(get_theme_service)
):
    return service.create(theme_data)


@router.get("/themes/{theme_id}", response_model=ThemeResponse)
async def get_theme(
    theme_id: str,
    user_data: Dict = Depends(require_permission("site:view")),
    service: ThemeService = Depends(get_theme_service)
):
    return service.get(theme_id)


@router.patch("/themes/{theme_id}", response_model=ThemeResponse)
async def update_theme(
    theme_id: str,
    update_data: ThemeUpdate,
    user_data: Dict = Depends(require_permission("site:edit")),
    service: ThemeService = Depends(get_theme_service)
):
    return service.update(theme_id, update_data)


@router.delete("/themes/{theme_id}", status_code=204)
async def delete_theme(
    theme_id: str,
    user_data: Dict = Depends(require_permission("site:delete")),
    service: ThemeService = Depends(get_theme_service)
):
    service.delete(theme_id)
