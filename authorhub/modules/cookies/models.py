# Supabase tables: cookie_settings, cookie_categories, cookie_consent_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
cookie_settings (single row, banner configuration):
- id: uuid (primary key)
- show_banner: boolean (default: true)
- banner_title: text (not null)
- banner_message: text (not null)
- accept_button_text, reject_button_text, customize_button_text: text
- privacy_policy_url, cookie_policy_url: text (nullable)
- banner_position: text - values: bottom, top, bottom-left, bottom-right
- theme: text - values: light, dark
- primary_color: text (nullable)
- consent_mode: text - values: opt-in, opt-out
- consent_expiry_days: integer (default: 365)
- auto_block_scripts, show_decline_button, force_consent, respect_dnt: boolean
- updated_at: timestamp (nullable)

cookie_categories:
- id: uuid (primary key)
- name: text (unique, not null) - machine name, e.g. necessary, analytics
- display_name: text (not null)
- description: text (nullable)
- is_required: boolean (default: false) - required categories are always enabled
- is_enabled: boolean (default: true)
- sort_order: integer (default: 0)
- cookies: text[] (default: []) - cookie names set by this category

cookie_consent_log (append-only audit of visitor choices):
- id: uuid (primary key)
- session_id: text (nullable)
- consent_action: text (not null) - values: accept-all, reject-all, custom
- accepted_categories: jsonb (default: [])
- rejected_categories: jsonb (default: [])
- ip_address: text (nullable)
- user_agent: text (nullable)
- created_at: timestamp (default: now())
"""
