# 📄 File: shelfkeeper/api/v1/__init__.py
# 🧭 Purpose (Layman Explanation):
# Version 1 of the ShelfKeeper subscriptions API, kept separate so later versions can be
# added without breaking existing apps.
# 🧪 Purpose (Technical Summary):
# Package initialization for API v1: version metadata and route prefixes shared by the router.
# 🔗 Dependencies:
# None
# 🔄 Connected Modules / Calls From:
# shelfkeeper.api.v1.router, shelfkeeper.main

__api_version__ = "v1"

ROUTE_PREFIXES = {
    "subscriptions": "/subscriptions",
    "features": "/features",
    "stripe": "/stripe",
}
