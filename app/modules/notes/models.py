# Supabase tables: notes, note_history
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notes:
- group_id: text (primary key) - one shared document per group
- content: text (not null) - rich-text payload, may be empty
- last_edited_by: jsonb (not null) - {user_id, display_name} snapshot at save time
- last_edited_at: timestamptz (not null)
- updated_at: timestamptz (not null)

note_history:
- id: text (primary key, uuid)
- group_id: text (not null, indexed with archived_at)
- content: text (not null) - content that was about to be overwritten
- saved_by: jsonb (nullable) - editor of the archived content
- saved_at: timestamptz (nullable) - when the archived content was saved
- archived_at: timestamptz (not null)

A group without a notes row reads as an empty document.
"""
