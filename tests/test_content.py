from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from authorhub.modules.content.schemas import (
    BlogPostCreate, BlogPostUpdate, BookCreate, BookUpdate, EventCreate, EventUpdate
)
from authorhub.modules.content.service import BlogPostService, BookService, EventService
from authorhub.modules.content.utils import count_words, reading_time_minutes, slugify
from tests.fakes import FakeSupabase

AUTHOR = {"id": "author-1", "manage_all": False}
OTHER = {"id": "author-2", "manage_all": False}
EDITOR = {"id": "mod-1", "manage_all": True}


@pytest.fixture
def db():
    return FakeSupabase({"books": [], "blog_posts": [], "events": []})


# utils

@pytest.mark.parametrize("text, slug", [
    ("The Long Night", "the-long-night"),
    ("  Hello,   World!  ", "hello-world"),
    ("Chapter 1 -- The Start", "chapter-1-the-start"),
    ("Café Crème", "caf-crme"),
    ("!!!", ""),
])
def test_slugify(text, slug):
    assert slugify(text) == slug


def test_count_words_ignores_markup():
    assert count_words("<p>One <strong>two</strong></p><p>three</p>") == 3
    assert count_words("") == 0


def test_reading_time_rounds_up_with_minimum_one():
    assert reading_time_minutes(0) == 1
    assert reading_time_minutes(200) == 1
    assert reading_time_minutes(201) == 2


# books

def test_create_book_derives_unique_slugs(db):
    service = BookService(db)
    first = service.create_book(BookCreate(title="The Long Night"), AUTHOR)
    second = service.create_book(BookCreate(title="The Long Night!"), OTHER)
    third = service.create_book(BookCreate(title="Other", slug="the-long-night"), AUTHOR)
    assert (first.slug, second.slug, third.slug) == ("the-long-night", "the-long-night-2", "the-long-night-3")
    assert first.user_id == "author-1"
    assert first.status == "draft"


def test_book_keeps_its_own_slug_on_update(db):
    service = BookService(db)
    book = service.create_book(BookCreate(title="Dawn"), AUTHOR)
    updated = service.update_book(book.id, BookUpdate(slug="dawn", subtitle="A novel"), AUTHOR)
    assert updated.slug == "dawn"
    assert updated.subtitle == "A novel"


def test_slug_from_punctuation_only_title_is_rejected(db):
    with pytest.raises(HTTPException) as exc:
        BookService(db).create_book(BookCreate(title="???"), AUTHOR)
    assert exc.value.status_code == 400


def test_invalid_slug_pattern_rejected_by_schema():
    with pytest.raises(ValidationError):
        BookCreate(title="x", slug="Not A Slug")


def test_authors_only_list_their_own_books(db):
    service = BookService(db)
    service.create_book(BookCreate(title="Mine"), AUTHOR)
    service.create_book(BookCreate(title="Theirs"), OTHER)
    assert [b.title for b in service.list_items(AUTHOR)] == ["Mine"]
    assert len(service.list_items(EDITOR)) == 2
    assert [b.title for b in service.list_items(EDITOR, owner_id="author-2")] == ["Theirs"]
    assert [b.title for b in service.list_items(EDITOR, search="the")] == ["Theirs"]


def test_list_pagination(db):
    service = BookService(db)
    for n in range(5):
        service.create_book(BookCreate(title=f"Book {n}"), AUTHOR)
    assert len(service.list_items(AUTHOR, limit=2, offset=0)) == 2
    assert len(service.list_items(AUTHOR, limit=2, offset=4)) == 1


def test_other_authors_cannot_touch_a_book(db):
    service = BookService(db)
    book = service.create_book(BookCreate(title="Private"), AUTHOR)
    for call in (
        lambda: service.get_item(book.id, OTHER),
        lambda: service.update_book(book.id, BookUpdate(title="Mine now"), OTHER),
        lambda: service.delete_item(book.id, OTHER),
    ):
        with pytest.raises(HTTPException) as exc:
            call()
        assert exc.value.status_code == 403
    assert service.get_item(book.id, EDITOR).title == "Private"


def test_missing_book_is_404(db):
    with pytest.raises(HTTPException) as exc:
        BookService(db).get_item("nope", EDITOR)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Book not found"


def test_delete_book(db):
    service = BookService(db)
    book = service.create_book(BookCreate(title="Gone"), AUTHOR)
    service.delete_item(book.id, AUTHOR)
    assert db.rows("books") == []


# blog posts

def test_post_gets_word_count_and_reading_time(db):
    post = BlogPostService(db).create_post(
        BlogPostCreate(title="Notes", content="<p>" + "word " * 450 + "</p>"), AUTHOR
    )
    assert post.word_count == 450
    assert post.reading_time == 3
    assert post.status == "draft"
    assert post.published_at is None


def test_author_publishing_goes_to_pending(db):
    post = BlogPostService(db).create_post(
        BlogPostCreate(title="Launch", content="hello", status="published"), AUTHOR
    )
    assert post.status == "pending"
    assert post.published_at is None


def test_editor_publishes_directly(db):
    post = BlogPostService(db).create_post(
        BlogPostCreate(title="Launch", content="hello", status="published"), EDITOR
    )
    assert post.status == "published"
    assert post.published_at is not None


def test_update_recounts_words_and_queues_publish(db):
    service = BlogPostService(db)
    post = service.create_post(BlogPostCreate(title="Draft", content="one two"), AUTHOR)
    updated = service.update_post(post.id, BlogPostUpdate(content="one two three", status="published"), AUTHOR)
    assert updated.word_count == 3
    assert updated.status == "pending"


def test_approve_post_publishes_and_records_approver(db):
    service = BlogPostService(db)
    post = service.create_post(BlogPostCreate(title="Queued", content="x", status="published"), AUTHOR)
    approved = service.approve_post(post.id, "mod-1")
    assert approved.status == "published"
    assert approved.approved_by == "mod-1"
    assert approved.approved_at is not None
    assert approved.published_at is not None


def test_blog_post_requires_content():
    with pytest.raises(ValidationError):
        BlogPostCreate(title="Empty", content="")


# events

def test_event_end_before_start_rejected_by_schema():
    with pytest.raises(ValidationError) as exc:
        EventCreate(title="Signing", event_date=datetime(2026, 5, 2, tzinfo=timezone.utc),
                    end_date=datetime(2026, 5, 1, tzinfo=timezone.utc))
    assert "End date cannot be before the event date" in str(exc.value)


def test_event_update_checks_merged_dates(db):
    service = EventService(db)
    event = service.create_event(
        EventCreate(title="Reading", event_date=datetime(2026, 5, 2, 18, tzinfo=timezone.utc)), AUTHOR
    )
    assert event.status == "upcoming"
    with pytest.raises(HTTPException) as exc:
        service.update_event(event.id, EventUpdate(end_date=datetime(2026, 5, 1, tzinfo=timezone.utc)), AUTHOR)
    assert exc.value.status_code == 400

    updated = service.update_event(
        event.id, EventUpdate(end_date=datetime(2026, 5, 2, 20, tzinfo=timezone.utc)), AUTHOR
    )
    assert updated.end_date == datetime(2026, 5, 2, 20, tzinfo=timezone.utc)


def test_events_have_no_slug(db):
    EventService(db).create_event(
        EventCreate(title="Panel", event_date=datetime(2026, 6, 1, tzinfo=timezone.utc)), AUTHOR
    )
    assert "slug" not in db.rows("events")[0]
