"""Test suite for the pytest-seeder package.

This package contains unit and integration tests validating the
binding environment, the context stack, the DSL functions, script
sequencing, the SQLAlchemy adapter, the command-line runner and
the pytest plugin.
"""
