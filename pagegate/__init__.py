"""
pagegate - layered authorization and ownership for the landing-page platform.

Answers, for any requested action: is this principal allowed to do this,
and if not, why and what should happen next?
"""

__version__ = "0.1.0"
