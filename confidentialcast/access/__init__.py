"""
ConfidentialCast Access Control - single owner gate.
"""

from confidentialcast.access.control import AccessControl

__all__ = ["AccessControl"]
