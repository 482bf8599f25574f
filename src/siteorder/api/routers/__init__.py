"""
siteorder.api.routers

HTTP routers, one module per surface (packages, domains, orders, webhooks, admin).
"""

# Package marker.
