from shelfkeeper.modules.subscription_management.application.handlers.subscription_command_handlers import (
    SubscriptionCommandHandler,
)

__all__ = ["SubscriptionCommandHandler"]
