# 📄 File: shelfkeeper/background_jobs/__init__.py
# 🧭 Purpose (Layman Explanation):
# Work that happens in the background instead of in answer to a web request, like the
# daily check of who owns too many items.
# 🧪 Purpose (Technical Summary):
# In-process asyncio reconciliation scheduler and Celery task wrappers around the same sweep.
# 🔗 Dependencies:
# asyncio, celery, subscription reconciliation service
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main (lifespan), celery_config (worker autodiscovery)
