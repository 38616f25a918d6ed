# Supabase tables: home_page_sections, hero_blocks, themes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
home_page_sections:
- id: uuid (primary key)
- title: text (not null)
- type: text (not null) - section renderer, e.g. interactive_hero, faq, trial_cta
- config: jsonb (default: {}) - free-form renderer settings
- enabled: boolean (default: true)
- order_index: integer (default: 0) - ascending display order
- created_at, updated_at: timestamp

hero_blocks:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- config: jsonb (default: {})
- enabled: boolean (default: true)
- preview_image_url: text (nullable)
- created_at, updated_at: timestamp

themes:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- config: jsonb (default: {}) - colours, fonts, layout
- premium: boolean (default: false) - only on plans with premium_themes
- preview_image_url: text (nullable)
- created_at, updated_at: timestamp
"""
