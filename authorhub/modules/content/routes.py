from fastapi import APIRouter, Depends, Query
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.content.schemas import (
    BookCreate, BookUpdate, BookResponse,
    BlogPostCreate, BlogPostUpdate, BlogPostResponse,
    EventCreate, EventUpdate, EventResponse
)
from authorhub.modules.content.service import BookService, BlogPostService, EventService
from authorhub.core.dependencies import content_scope, require_permission
from supabase import Client
from typing import List, Dict, Optional

books_router = APIRouter(prefix="/books", tags=["books"])
blog_router = APIRouter(prefix="/blog-posts", tags=["blog"])
events_router = APIRouter(prefix="/events", tags=["events"])


def get_book_service(supabase: Client = Depends(get_supabase)) -> BookService:
    return BookService(supabase)


def get_blog_service(supabase: Client = Depends(get_supabase)) -> BlogPostService:
    return BlogPostService(supabase)


def get_event_service(supabase: Client = Depends(get_supabase)) -> EventService:
    return EventService(supabase)


# Books

@books_router.get("", response_model=List[BookResponse])
async def list_books(
    status: Optional[str] = None,
    search: Optional[str] = None,
    owner_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(content_scope("books:view")),
    service: BookService = Depends(get_book_service)
):
    """List books (own books unless the caller manages all)"""
    return service.list_items(user_data, status=status, search=search, owner_id=owner_id,
                              limit=limit, offset=offset)


@books_router.post("", response_model=BookResponse, status_code=201)
async def create_book(
    book_data: BookCreate,
    user_data: Dict = Depends(content_scope("books:create")),
    service: BookService = Depends(get_book_service)
):
    return service.create_book(book_data, user_data)


@books_router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: str,
    user_data: Dict = Depends(content_scope("books:view")),
    service: BookService = Depends(get_book_service)
):
    return service.get_item(book_id, user_data)


@books_router.patch("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: str,
    update_data: BookUpdate,
    user_data: Dict = Depends(content_scope("books:edit")),
    service: BookService = Depends(get_book_service)
):
    return service.update_book(book_id, update_data, user_data)


@books_router.delete("/{book_id}", status_code=204)
async def delete_book(
    book_id: str,
    user_data: Dict = Depends(content_scope("books:delete")),
    service: BookService = Depends(get_book_service)
):
    service.delete_item(book_id, user_data)


# Blog posts

@blog_router.get("", response_model=List[BlogPostResponse])
async def list_posts(
    status: Optional[str] = None,
    search: Optional[str] = None,
    owner_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(content_scope("blog:view")),
    service: BlogPostService = Depends(get_blog_service)
):
    """List blog posts (own posts unless the caller manages all)"""
    return service.list_items(user_data, status=status, search=search, owner_id=owner_id,
                              limit=limit, offset=offset)


@blog_router.post("", response_model=BlogPostResponse, status_code=201)
async def create_post(
    post_data: BlogPostCreate,
    user_data: Dict = Depends(content_scope("blog:create")),
    service: BlogPostService = Depends(get_blog_service)
):
    """Create a post; authors publishing without approval rights land in pending"""
    return service.create_post(post_data, user_data)


@blog_router.get("/{post_id}", response_model=BlogPostResponse)
async def get_post(
    post_id: str,
    user_data: Dict = Depends(content_scope("blog:view")),
    service: BlogPostService = Depends(get_blog_service)
):
    return service.get_item(post_id, user_data)


@blog_router.patch("/{post_id}", response_model=BlogPostResponse)
async def update_post(
    post_id: str,
    update_data: BlogPostUpdate,
    user_data: Dict = Depends(content_scope("blog:edit")),
    service: BlogPostService = Depends(get_blog_service)
):
    return service.update_post(post_id, update_data, user_data)


@blog_router.post("/{post_id}/approve", response_model=BlogPostResponse)
async def approve_post(
    post_id: str,
    user_data: Dict = Depends(require_permission("blog:approve")),
    service: BlogPostService = Depends(get_blog_service)
):
    """Publish a pending post"""
    return service.approve_post(post_id, user_data["id"])


@blog_router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    user_data: Dict = Depends(content_scope("blog:delete")),
    service: BlogPostService = Depends(get_blog_service)
):
    service.delete_item(post_id, user_data)


# Events

@events_router.get("", response_model=List[EventResponse])
async def list_events(
    status: Optional[str] = None,
    search: Optional[str] = None,
    owner_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(content_scope("events:view")),
    service: EventService = Depends(get_event_service)
):
    return service.list_items(user_data, status=status, search=search, owner_id=owner_id,
                              limit=limit, offset=offset)


@events_router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    event_data: EventCreate,
    user_data: Dict = Depends(content_scope("events:create")),
    service: EventService = Depends(get_event_service)
):
    return service.create_event(event_data, user_data)


@events_router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    user_data: Dict = Depends(content_scope("events:view")),
    service: EventService = Depends(get_event_service)
):
    return service.get_item(event_id, user_data)


@events_router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    update_data: EventUpdate,
    user_data: Dict = Depends(content_scope("events:edit")),
    service: EventService = Depends(get_event_service)
):
    """Update an event; the end date may not precede the start"""
    return service.update_event(event_id, update_data, user_data)


@events_router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    user_data: Dict = Depends(content_scope("events:delete")),
    service: EventService = Depends(get_event_service)
):
    service.delete_item(event_id, user_data)
