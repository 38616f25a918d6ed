from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal, Any
from datetime import datetime, date

BookStatus = Literal["draft", "published", "archived"]
PostStatus = Literal["draft", "pending", "published", "archived"]
EventStatus = Literal["upcoming", "ongoing", "completed", "cancelled"]

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class BookBase(BaseModel):
    subtitle: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    isbn: Optional[str] = Field(None, max_length=20)
    publisher: Optional[str] = None
    publication_date: Optional[date] = None
    page_count: Optional[int] = Field(None, ge=1)
    language: Optional[str] = None
    category: Optional[str] = None
    genres: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    cover_image_url: Optional[str] = None
    purchase_links: Optional[Any] = None
    seo_title: Optional[str] = Field(None, max_length=70)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = None


class BookCreate(BookBase):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    status: BookStatus = "draft"


class BookUpdate(BookBase):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    status: Optional[BookStatus] = None


class BookResponse(BookBase):
    id: str
    user_id: str
    title: str
    slug: Optional[str] = None
    status: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BlogPostBase(BaseModel):
    excerpt: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    featured_image_url: Optional[str] = None
    meta_title: Optional[str] = Field(None, max_length=70)
    meta_description: Optional[str] = Field(None, max_length=160)


class BlogPostCreate(BlogPostBase):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    status: PostStatus = "draft"


class BlogPostUpdate(BlogPostBase):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    status: Optional[PostStatus] = None


class BlogPostResponse(BlogPostBase):
    id: str
    user_id: str
    title: str
    slug: str
    content: str
    status: Optional[str] = None
    word_count: Optional[int] = None
    reading_time: Optional[int] = None
    published_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventBase(BaseModel):
    description: Optional[str] = None
    event_type: Optional[str] = None
    location: Optional[str] = None
    is_virtual: Optional[bool] = None
    meeting_link: Optional[str] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    registration_required: Optional[bool] = None
    featured_image_url: Optional[str] = None


class EventCreate(EventBase):
    title: str = Field(..., min_length=1, max_length=200)
    event_date: datetime
    end_date: Optional[datetime] = None
    status: EventStatus = "upcoming"

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.event_date:
            raise ValueError("End date cannot be before the event date")
        return self


class EventUpdate(EventBase):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    event_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[EventStatus] = None


class EventResponse(EventBase):
    id: str
    user_id: str
    title: str
    event_date: datetime
    end_date: Optional[datetime] = None
    current_attendees: Optional[int] = None
    status: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
