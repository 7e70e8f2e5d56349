# 📄 File: shelfkeeper/shared/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shared' folder as a Python package containing common tools that every part
# of the service can use, like configuration, errors, logging and database access.
#
# 🧪 Purpose (Technical Summary):
# Shared kernel package initialization for configuration, core primitives,
# infrastructure and cross-cutting utilities.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - All application modules importing shared utilities

"""
Shared Kernel - Common Utilities and Infrastructure

- Configuration management
- Exception hierarchy and operation results
- Database infrastructure
- Logging utilities
"""

__all__ = []
