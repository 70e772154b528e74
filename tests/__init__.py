"""
ReelIndex Test Suite

Test Categories:
- unit/: Fast, isolated unit tests
- integration/: Tests with the file system and database together
- fixtures/: Shared test data and mocks
"""
