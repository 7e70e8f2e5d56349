# 📄 File: shelfkeeper/modules/subscription_management/presentation/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups the web endpoints for subscriptions, feature checks and Stripe notifications.
# 🧪 Purpose (Technical Summary):
# Presentation layer: FastAPI routers, request/response schemas and dependency providers.
# 🔗 Dependencies:
# FastAPI, application layer, infrastructure adapters
# 🔄 Connected Modules / Calls From:
# shelfkeeper.api.v1.router
