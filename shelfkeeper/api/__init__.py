"""
HTTP surface of the ShelfKeeper subscriptions service: middleware and versioned routers.
"""
