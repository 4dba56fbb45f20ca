# Session issuing
# No dedicated tables - credentials live on the users table (see users/models.py)

"""
Credential sources:
- email + password: bcrypt hash stored in users.password_hash
- external identity: Google ID token, verified against settings.google_client_id;
  the provider subject id is stored in users.external_id

Issued session token (JWT, settings.jwt_algorithm):
- sub: user id
- email: lower-cased email
- name: display name
- iat / exp: issue and expiry time (settings.jwt_expires_minutes)
"""
