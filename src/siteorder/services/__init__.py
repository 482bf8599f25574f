"""
siteorder.services

Service layer.

Responsibilities:
- Own transaction boundaries (commit/rollback) for each use case.
- Compose repositories and gateway primitives into request-level operations.
"""

# Package marker.
