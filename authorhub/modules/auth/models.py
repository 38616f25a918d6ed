# Supabase Auth
# This module uses Supabase's built-in authentication system
# Roles are stored in public.user_roles, moderator grants in public.moderator_permissions

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

user_roles:
- id: uuid (primary key)
- user_id: uuid (references auth.users.id, not null)
- role: app_role enum (admin | moderator | user)
- created_at: timestamp (default: now())

moderator_permissions:
- id: uuid (primary key)
- user_id: uuid (references auth.users.id, not null)
- feature: text (not null) - see config/permissions_config.FEATURES
- can_view, can_create, can_edit, can_delete, can_approve: boolean (default: false)
"""
