# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

users:
- id: text (primary key) - uuid for email accounts, "google_<sub>" for external accounts
- email: text (unique, not null) - stored lower-cased
- display_name: text (not null)
- password_hash: text (nullable) - bcrypt, absent for external-only accounts
- external_id: text (nullable, unique) - subject id from the identity provider
- photo_url: text (nullable)
- provider: text (not null) - values: email, external
- group_ids: jsonb (not null, default '[]') - ids of groups the user belongs to
- created_at: timestamptz (not null)
- updated_at: timestamptz (not null)

Users are never hard-deleted.
"""
