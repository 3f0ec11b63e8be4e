"""
Test Suite

Tests for the Leadflow automation backend. The engine runs against the
in-memory store in conftest.py; repository tests mock the Mongo collection.

To run tests:
    pytest backend/tests
"""
