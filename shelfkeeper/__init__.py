# 📄 File: shelfkeeper/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shelfkeeper' folder as our subscription service package and records its version.
#
# 🧪 Purpose (Technical Summary):
# Package initialization with version metadata for the ShelfKeeper subscription and
# entitlement FastAPI service.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - shelfkeeper.main (application entry point)
# - pyproject.toml (package discovery)

"""
ShelfKeeper Subscriptions - plan lifecycle and feature entitlements

Tracks which plan each library owner is on, answers "may this user do X?"
and periodically reminds owners who hold more items than their plan allows.
"""

__version__ = "1.0.0"
__title__ = "ShelfKeeper Subscriptions API"
__description__ = "Subscription lifecycle and entitlement-policy service"
__author__ = "ShelfKeeper Team"
