# Supabase tables: books, blog_posts, events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Every row is owned by user_id (references auth.users.id)

"""
books:
- id: uuid (primary key)
- user_id: uuid (not null)
- title: text (not null), subtitle: text (nullable)
- slug: text (unique per table)
- description: text (nullable)
- isbn, publisher, language, category: text (nullable)
- publication_date: date (nullable)
- page_count: integer (nullable)
- genres, tags: text[] (nullable)
- cover_image_url: text (nullable)
- purchase_links: jsonb (nullable)
- seo_title, seo_description, seo_keywords: text (nullable)
- status: text (default: 'draft') - values: draft, published, archived
- created_at, updated_at: timestamp

blog_posts:
- id: uuid (primary key)
- user_id: uuid (not null)
- title: text (not null)
- slug: text (not null, unique)
- content: text (not null)
- excerpt, category: text (nullable)
- tags: text[] (nullable)
- featured: boolean (default: false)
- featured_image_url: text (nullable)
- meta_title, meta_description: text (nullable)
- status: text (default: 'draft') - values: draft, pending, published, archived
- word_count: integer - derived from content
- reading_time: integer - minutes at 200 words per minute, at least 1
- published_at: timestamp (nullable)
- approved_at: timestamp (nullable), approved_by: uuid (nullable)
- created_at, updated_at: timestamp

events:
- id: uuid (primary key)
- user_id: uuid (not null)
- title: text (not null)
- description: text (nullable)
- event_date: timestamp (not null)
- end_date: timestamp (nullable) - never earlier than event_date
- event_type, location, meeting_link: text (nullable)
- is_virtual, registration_required: boolean
- max_attendees, current_attendees: integer (nullable)
- featured_image_url: text (nullable)
- status: text (default: 'upcoming') - values: upcoming, ongoing, completed, cancelled
- created_at, updated_at: timestamp
"""
