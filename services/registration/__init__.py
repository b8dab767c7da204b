"""
Warranty Registration Service
=============================

Warranty registration form backend.

Features:
- Management ID validation and lookup
- One-time registration of customer details onto a warranty record
- Warranty status lookup by management ID and phone suffix
- kintone, relational or mock record store, chosen at startup

Port: 8000
"""

__version__ = "0.1.0"
