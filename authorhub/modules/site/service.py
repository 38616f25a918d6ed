from supabase import Client
from fastapi import HTTPException
from datetime import datetime, timezone
from typing import List, Type
from pydantic import BaseModel
from authorhub.modules.site.schemas import (
    SectionCreate, SectionResponse, HeroBlockResponse, ThemeResponse
)
import logging

logger = logging.getLogger(__name__)


class SiteTableService:
    """Plain CRUD over one page builder table"""

    def __init__(self, supabase: Client, table: str, label: str,
                 response_model: Type[BaseModel], order_by: str = "created_at"):
        self.supabase = supabase
        self.table = table
        self.label = label
        self.response_model = response_model
        self.order_by = order_by

    def list(self, enabled_only: bool = False) -> List[BaseModel]:
        try:
            query = self.supabase.table(self.table).select("*")
            if enabled_only:
                query = query.eq("enabled", True)
            result = query.order(self.order_by).execute()
            return [self.response_model(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing {self.table}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get(self, item_id: str) -> BaseModel:
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("id", item_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail=f"{self.label} not found")
            return self.response_model(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def create(self, data: BaseModel) -> BaseModel:
        return self._insert(data.model_dump())

    def _insert(self, payload: dict) -> BaseModel:
        try:
            result = self.supabase.table(self.table).insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=f"Failed to create {self.label.lower()}")
            logger.info(f"{self.label} created: {result.data[0].get('id')}")
            return self.response_model(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update(self, item_id: str, data: BaseModel) -> BaseModel:
        update_dict = data.model_dump(exclude_unset=True)
        if not update_dict:
            return self.get(item_id)
        update_dict["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table(self.table)\
                .update(update_dict)\
                .eq("id", item_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=f"{self.label} not found")
            return self.response_model(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete(self, item_id: str) -> None:
        self.get(item_id)
        try:
            self.supabase.table(self.table)\
                .delete()\
                .eq("id", item_id)\
                .execute()
            logger.info(f"{self.label} deleted: {item_id}")
        except Exception as e:
            logger.error(f"Error deleting {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))


class SectionService(SiteTableService):
    def __init__(self, supabase: Client):
        super().__init__(supabase, "home_page_sections", "Section", SectionResponse, order_by="order_index")

    def create(self, data: SectionCreate) -> SectionResponse:
        payload = data.model_dump()
        if payload["order_index"] is None:
            sections = self.list()
            payload["order_index"] = max((s.order_index for s in sections), default=-1) + 1
        return self._insert(payload)

    def reorder(self, section_ids: List[str]) -> List[SectionResponse]:
        """Set order_index to each section's position in section_ids"""
        if len(set(section_ids)) != len(section_ids):
            raise HTTPException(status_code=400, detail="Duplicate section ids in reorder request")
        known = {s.id for s in self.list()}
        missing = [sid for sid in section_ids if sid not in known]
        if missing:
            raise HTTPException(status_code=404, detail=f"Section not found: {missing[0]}")
        now = datetime.now(timezone.utc).isoformat()
        try:
            for index, section_id in enumerate(section_ids):
                self.supabase.table(self.table)\
                    .update({"order_index": index, "updated_at": now})\
                    .eq("id", section_id)\
                    .execute()
        except Exception as e:
            logger.error(f"Error reordering sections: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Reordered {len(section_ids)} home page sections")
        return self.list()


class HeroBlockService(SiteTableService):
    def __init__(self, supabase: Client):
        super().__init__(supabase, "hero_blocks", "Hero block", HeroBlockResponse)


class ThemeService(SiteTableService):
    def __init__(self, supabase: Client):
        super().__init__(supabase, "themes", "Theme", ThemeResponse, order_by="name")
