# webhook_tester/__version__.py
"""
Version information for Webhook Tester.

The version follows semantic versioning: MAJOR.MINOR.PATCH

- MAJOR: Incompatible API changes
- MINOR: Add functionality in a backward compatible manner
- PATCH: Backward compatible bug fixes
"""

__version__ = "1.0.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Additional version metadata
__description__ = "Webhook Tester - batch harness for magic flow media-generation webhooks"
