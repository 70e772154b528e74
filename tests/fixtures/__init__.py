"""
Test Fixtures

Shared test data and mock responses.
"""
