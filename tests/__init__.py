"""
Warranty Registration Test Suite
================================

Test organization:
- tests/unit/                    - Validation, settings and logging (no I/O)
- tests/services/registration/   - Service flow, API routes and record stores

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=services          # With coverage
"""
