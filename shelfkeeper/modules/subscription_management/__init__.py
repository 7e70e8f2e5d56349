# 📄 File: shelfkeeper/modules/subscription_management/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes everything about plans and subscriptions: who is on which plan, what each plan
# unlocks and the nightly reminder for owners over their item limit.
# 🧪 Purpose (Technical Summary):
# Package initialization for the subscription management module, laid out in
# domain / application / infrastructure / presentation layers.
# 🔗 Dependencies:
# FastAPI, SQLAlchemy, pydantic, stripe, httpx, shelfkeeper.shared.core
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main, shelfkeeper.api.v1.router, background jobs

"""
Subscription Management Module

- Domain: Subscription entity, plan ordering, entitlement table, lifecycle,
  feature gate and reconciliation services
- Application: commands and DTOs
- Infrastructure: SQLAlchemy repositories, Stripe and SendGrid gateways
- Presentation: subscription, feature and webhook endpoints
"""

__version__ = "1.0.0"
__module_name__ = "subscription_management"
