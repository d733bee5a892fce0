"""
Keyway access-control service package.

Keep package import side-effects to a minimum; import client/models directly.
"""

__all__ = [
    "client",
    "models",
]
