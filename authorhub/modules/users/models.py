# Supabase tables: profiles, user_roles, moderator_permissions, auth.users
# Storage bucket: avatars
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (nullable) - synced from auth.users
- full_name: text (nullable)
- avatar_url: text (nullable) - public URL inside the avatars bucket
- bio: text (nullable)
- mobile_number, country_code, website_url: text (nullable)
- slug: text (nullable) - public author page path
- public_profile: boolean (nullable)
- social_links: jsonb (nullable)
- specializations: text[] (nullable)
- seo_title, seo_description, seo_keywords: text (nullable)
- subscription_plan_id, theme_id: uuid (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp

user_roles:
- id: uuid (primary key)
- user_id: uuid (references auth.users.id)
- role: text - values: admin, moderator, user

moderator_permissions:
- id: uuid (primary key)
- user_id: uuid (references auth.users.id)
- feature: text - key of FEATURES in config/permissions_config.py
- can_view, can_create, can_edit, can_delete, can_approve: boolean
- unique (user_id, feature)

Note: Authentication data (password, tokens) is stored in auth.users table
managed by Supabase Auth. This table only stores profile information.
"""
