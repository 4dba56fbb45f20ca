# Supabase table: tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

tasks:
- id: text (primary key, uuid)
- group_id: text (not null, indexed with created_at)
- title: text (not null) - at most TITLE_MAX_LENGTH characters
- description: text (not null, default '')
- assignee: jsonb (nullable) - {user_id, display_name}
- due_date: text (nullable) - ISO 8601 string as submitted
- completed: boolean (not null, default false)
- completed_at: timestamptz (nullable) - set together with completed_by
- completed_by: jsonb (nullable) - {user_id, display_name}
- created_by: jsonb (not null) - {user_id, display_name}
- created_at: timestamptz (not null)
- updated_at: timestamptz (not null)
"""

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
