# webhook_tester/__init__.py
"""
Webhook Tester Application Package.
"""

from webhook_tester.__version__ import __description__, __version__, __version_info__

__all__ = [
    "__version__",
    "__version_info__",
    "__description__",
]
