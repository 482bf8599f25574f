"""
siteorder.payments

Payment gateway primitives.

Responsibilities:
- Gateway-specific payload parsing, signature/token checks and status mapping.
- Credential format validation for super-admin secret management.
"""

# Package marker.
