"""
siteorder.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories, one per table.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; payment reconciliation belongs in services.
