"""
Celery tasks. Modules here are picked up by ``celery_config`` autodiscovery.
"""
