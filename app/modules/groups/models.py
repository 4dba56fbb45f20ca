# Supabase table: groups
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: text (primary key, uuid)
- name: text (not null, <= 80 chars)
- description: text (not null, default '', <= 500 chars)
- invite_code: text (not null) - 8 uppercase hex chars, compared case-insensitively
- created_by: text (not null) - user id of the creator
- members: jsonb (not null) - list of member snapshots:
    {user_id, email, display_name, role: admin|member, joined_at}
- created_at: timestamptz (not null)
- updated_at: timestamptz (not null)

Invariant: while members is non-empty at least one member has role admin.
A group whose last member leaves is deleted.
"""

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
INVITE_CODE_LENGTH = 8
# Upper bound on ids per "in" lookup when fanning out over a user's groups
GROUP_FETCH_CHUNK_SIZE = 30
