"""
Warranty Registration Services
==============================

Services:
- registration: Warranty registration and status lookup API
"""

__all__ = [
    "registration",
]
