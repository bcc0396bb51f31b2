"""
Integration tests package.

Contains tests that run repositories, services, the JSON API and the CLI
against a real SQLite database.
"""
