"""
Registration Routes
===================

API route handlers for the Warranty Registration Service.
"""

from services.registration.routes import plans, registration


__all__ = ["plans", "registration"]
