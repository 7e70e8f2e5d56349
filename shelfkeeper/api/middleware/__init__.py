# 📄 File: shelfkeeper/api/middleware/__init__.py
# 🧭 Purpose (Layman Explanation):
# The checkpoints every request passes through: logging, error catching and sign-in checks.
# 🧪 Purpose (Technical Summary):
# Starlette middleware stack registered by shelfkeeper.main.
# 🔗 Dependencies:
# Starlette, shelfkeeper.shared
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main

from .authentication import AuthenticationMiddleware
from .error_handling import ErrorHandlingMiddleware, error_envelope, exception_envelope
from .logging import RequestLoggingMiddleware

__all__ = [
    "AuthenticationMiddleware",
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "error_envelope",
    "exception_envelope",
]
