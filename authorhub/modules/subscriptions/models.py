# Supabase tables: subscription_plans, user_subscriptions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Billing itself (Stripe) is outside this backend; ids are stored for reference only

"""
subscription_plans:
- id: uuid (primary key)
- name: text (not null) - e.g. Free, Pro
- price_monthly, price_yearly: numeric (nullable)
- max_books, max_publications: integer (nullable) - -1 means unlimited
- features: jsonb (default: [])
- custom_domain, advanced_analytics, premium_themes, no_watermark,
  contact_form, newsletter_integration: boolean
- blog, events, gallery, faq, awards: boolean (nullable)
- available_themes: jsonb (nullable)
- created_at, updated_at: timestamp

user_subscriptions:
- id: uuid (primary key)
- user_id: uuid (references auth.users.id)
- plan_id: uuid (references subscription_plans.id)
- status: text - values: active, trialing, cancelled, inactive
- trial_ends_at: timestamp (nullable)
- current_period_start, current_period_end: timestamp (nullable)
- stripe_customer_id, stripe_subscription_id: text (nullable)
- created_at, updated_at: timestamp
"""
