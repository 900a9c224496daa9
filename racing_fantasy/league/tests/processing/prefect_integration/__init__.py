"""
Prefect integration tests.

These run the flows under prefect.testing.utilities.prefect_test_harness
so task retries, caching and run context are real. The results feed is
mocked and the database is the Django test database.
"""
