"""Example entities, persistence doubles and mapped models for tests."""
