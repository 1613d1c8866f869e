"""
Task Tracker Backend package.

Multi-tenant task tracking: account registration and login, bearer-token
sessions, and owner-scoped task CRUD with status filtering and pagination.

The ASGI application lives at ``task_api.main:app``; ``task_api.main.create_app``
builds one around explicitly wired services.
"""

__version__ = "0.1.0"
