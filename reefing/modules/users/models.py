# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by the external identity provider; rows are created lazily

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, default: gen_random_uuid())
- email: text (unique, not null) - from the token's email claim, or a placeholder
- name: text (nullable)
- username: text (unique, nullable) - derived from email, numeric suffix on collision
- identity_provider_id: text (unique, not null) - the token's `sub` claim
- profile_image_key: text (nullable) - S3 object key, never a URL
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Rows are never hard-deleted.
"""
