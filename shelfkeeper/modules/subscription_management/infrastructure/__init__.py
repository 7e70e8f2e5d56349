# 📄 File: shelfkeeper/modules/subscription_management/infrastructure/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups the parts that actually store subscriptions and talk to Stripe and SendGrid.
# 🧪 Purpose (Technical Summary):
# Infrastructure layer: SQLAlchemy repositories and external service gateways implementing
# the domain contracts of the subscription management module.
# 🔗 Dependencies:
# SQLAlchemy, stripe, httpx, tenacity
# 🔄 Connected Modules / Calls From:
# presentation dependencies, background jobs, tests
