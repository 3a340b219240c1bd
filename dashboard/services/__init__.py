"""Services layer - business logic and external integrations.

- credentials, token_service, session_service, role_service: the auth core
- account_service: user-facing account flows built on the core
- oauth_service: GitHub connect
- email_service: transactional email
- sweeper: background cleanup
- repositories/: Data access layer
"""
