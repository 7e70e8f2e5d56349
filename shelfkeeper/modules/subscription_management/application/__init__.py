# 📄 File: shelfkeeper/modules/subscription_management/application/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups the request forms, response shapes and request handlers for subscriptions.
# 🧪 Purpose (Technical Summary):
# Application layer (CQRS commands, DTOs and command handlers) sitting between the
# presentation endpoints and the subscription domain services.
# 🔗 Dependencies:
# pydantic, subscription domain services
# 🔄 Connected Modules / Calls From:
# presentation API endpoints and dependencies
