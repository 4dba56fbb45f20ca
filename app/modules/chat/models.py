# Supabase table: messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

messages:
- id: text (primary key, uuid) - assigned by the server, never by clients
- group_id: text (not null, indexed with created_at)
- sender_id: text (not null)
- sender_email: text (not null) - snapshot at post time
- sender_name: text (not null) - snapshot at post time
- text: text (not null, 1..2000 chars, trimmed)
- created_at: timestamptz (not null)
- updated_at: timestamptz (not null)

Messages are immutable; only the sender may delete one (hard delete).
"""

MESSAGE_MAX_LENGTH = 2000
