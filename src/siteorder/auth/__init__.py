"""
siteorder.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation.
- FastAPI auth dependencies (Principal, RBAC, super-admin lookup).
"""

# Package marker.
