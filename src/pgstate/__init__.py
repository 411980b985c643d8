"""
pgstate - Declarative state management for PostgreSQL catalog objects.

Maps catalog objects (extensions today) onto a create/read/update/delete
lifecycle that an infrastructure-as-code engine can drive.
"""

__version__ = "0.3.0"
__author__ = "pgstate maintainers"
