# 📄 File: shelfkeeper/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Holds the settings that tell the service how to reach its database, Stripe and SendGrid,
# and how often to check plan limits.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization exporting the pydantic-settings model and its cached factory.
#
# 🔗 Dependencies:
# - settings.py (application settings)
#
# 🔄 Connected Modules / Calls From:
# - shelfkeeper.main (application startup)
# - All modules requiring configuration

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
