"""
Subscription management domain layer: entities, entitlement rules,
repository interfaces and domain services.
"""
