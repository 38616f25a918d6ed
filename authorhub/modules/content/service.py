from supabase import Client
from fastapi import HTTPException
from datetime import datetime, timezone
from typing import List, Optional, Type
from pydantic import BaseModel
from authorhub.core.dependencies import check_owner_access
from authorhub.modules.content.schemas import (
    BookCreate, BookUpdate, BookResponse,
    BlogPostCreate, BlogPostUpdate, BlogPostResponse,
    EventCreate, EventUpdate, EventResponse
)
from authorhub.modules.content.utils import slugify, count_words, reading_time_minutes
import logging

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 100


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class OwnedContentService:
    """CRUD over a table whose rows belong to user_id"""

    table: str = ""
    label: str = ""
    response_model: Type[BaseModel] = BaseModel
    uses_slug: bool = True

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_row(self, item_id: str) -> dict:
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("id", item_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail=f"{self.label} not found")
            return result.data
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def _slug_taken(self, slug: str, exclude_id: Optional[str]) -> bool:
        result = self.supabase.table(self.table)\
            .select("id")\
            .eq("slug", slug)\
            .execute()
        return any(row["id"] != exclude_id for row in result.data or [])

    def unique_slug(self, source: str, exclude_id: Optional[str] = None) -> str:
        """Slug from source, suffixed -2, -3... until no other row uses it"""
        base = slugify(source)
        if not base:
            raise HTTPException(status_code=400, detail="Cannot derive a slug from an empty title")
        candidate = base
        for n in range(2, MAX_SLUG_ATTEMPTS + 2):
            if not self._slug_taken(candidate, exclude_id):
                return candidate
            candidate = f"{base}-{n}"
        raise HTTPException(status_code=400, detail=f"Slug '{base}' is already in use")

    def list_items(self, user_data: dict, status: Optional[str] = None, search: Optional[str] = None,
                   owner_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[BaseModel]:
        """List rows visible to the caller, newest first"""
        try:
            query = self.supabase.table(self.table).select("*")
            if not user_data.get("manage_all"):
                query = query.eq("user_id", user_data["id"])
            elif owner_id:
                query = query.eq("user_id", owner_id)
            if status:
                query = query.eq("status", status)
            if search:
                query = query.ilike("title", f"%{search}%")
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [self.response_model(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing {self.table}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_item(self, item_id: str, user_data: dict) -> BaseModel:
        row = self._get_row(item_id)
        check_owner_access(row.get("user_id"), user_data)
        return self.response_model(**row)

    def _prepare_create(self, payload: dict, user_data: dict) -> dict:
        return payload

    def _prepare_update(self, payload: dict, current: dict, user_data: dict) -> dict:
        return payload

    def create_item(self, data: BaseModel, user_data: dict) -> BaseModel:
        payload = data.model_dump(mode="json")
        if self.uses_slug:
            payload["slug"] = self.unique_slug(payload.get("slug") or payload["title"])
        payload = self._prepare_create(payload, user_data)
        payload["user_id"] = user_data["id"]
        try:
            result = self.supabase.table(self.table).insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=f"Failed to create {self.label.lower()}")
            logger.info(f"{self.label} created: {result.data[0].get('id')} by {user_data['id']}")
            return self.response_model(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_item(self, item_id: str, data: BaseModel, user_data: dict) -> BaseModel:
        current = self._get_row(item_id)
        check_owner_access(current.get("user_id"), user_data)

        payload = data.model_dump(mode="json", exclude_unset=True)
        if self.uses_slug and payload.get("slug"):
            payload["slug"] = self.unique_slug(payload["slug"], exclude_id=item_id)
        payload = self._prepare_update(payload, current, user_data)
        if not payload:
            return self.response_model(**current)
        payload["updated_at"] = _now()
        try:
            result = self.supabase.table(self.table)\
                .update(payload)\
                .eq("id", item_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=f"Failed to update {self.label.lower()}")
            return self.response_model(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_item(self, item_id: str, user_data: dict) -> None:
        current = self._get_row(item_id)
        check_owner_access(current.get("user_id"), user_data)
        try:
            self.supabase.table(self.table)\
                .delete()\
                .eq("id", item_id)\
                .execute()
            logger.info(f"{self.label} deleted: {item_id} by {user_data['id']}")
        except Exception as e:
            logger.error(f"Error deleting {self.label.lower()}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))


class BookService(OwnedContentService):
    table = "books"
    label = "Book"
    response_model = BookResponse

    def create_book(self, data: BookCreate, user_data: dict) -> BookResponse:
        return self.create_item(data, user_data)

    def update_book(self, book_id: str, data: BookUpdate, user_data: dict) -> BookResponse:
        return self.update_item(book_id, data, user_data)


class BlogPostService(OwnedContentService):
    table = "blog_posts"
    label = "Blog post"
    response_model = BlogPostResponse

    def _publish_status(self, status: str, current_status: Optional[str], user_data: dict) -> str:
        # authors without moderation rights queue posts for approval
        if status == "published" and current_status != "published" and not user_data.get("manage_all"):
            return "pending"
        return status

    def _prepare_create(self, payload: dict, user_data: dict) -> dict:
        words = count_words(payload["content"])
        payload["word_count"] = words
        payload["reading_time"] = reading_time_minutes(words)
        payload["status"] = self._publish_status(payload["status"], None, user_data)
        if payload["status"] == "published":
            payload["published_at"] = _now()
        return payload

    def _prepare_update(self, payload: dict, current: dict, user_data: dict) -> dict:
        if "content" in payload:
            words = count_words(payload["content"])
            payload["word_count"] = words
            payload["reading_time"] = reading_time_minutes(words)
        if payload.get("status"):
            payload["status"] = self._publish_status(payload["status"], current.get("status"), user_data)
            if payload["status"] == "published" and not current.get("published_at"):
                payload["published_at"] = _now()
        return payload

    def create_post(self, data: BlogPostCreate, user_data: dict) -> BlogPostResponse:
        return self.create_item(data, user_data)

    def update_post(self, post_id: str, data: BlogPostUpdate, user_data: dict) -> BlogPostResponse:
        return self.update_item(post_id, data, user_data)

    def approve_post(self, post_id: str, approver_id: str) -> BlogPostResponse:
        """Publish a post and record who approved it"""
        current = self._get_row(post_id)
        now = _now()
        payload = {
            "status": "published",
            "approved_at": now,
            "approved_by": approver_id,
            "updated_at": now,
        }
        if not current.get("published_at"):
            payload["published_at"] = now
        try:
            result = self.supabase.table(self.table)\
                .update(payload)\
                .eq("id", post_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to approve blog post")
            logger.info(f"Blog post {post_id} approved by {approver_id}")
            return BlogPostResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error approving blog post: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))


class EventService(OwnedContentService):
    table = "events"
    label = "Event"
    response_model = EventResponse
    uses_slug = False

    def _prepare_update(self, payload: dict, current: dict, user_data: dict) -> dict:
        start = payload.get("event_date", current.get("event_date"))
        end = payload.get("end_date", current.get("end_date"))
        if start and end and _parse(end) < _parse(start):
            raise HTTPException(status_code=400, detail="End date cannot be before the event date")
        return payload

    def create_event(self, data: EventCreate, user_data: dict) -> EventResponse:
        return self.create_item(data, user_data)

    def update_event(self, event_id: str, data: EventUpdate, user_data: dict) -> EventResponse:
        return self.update_item(event_id, data, user_data)


def _parse(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
