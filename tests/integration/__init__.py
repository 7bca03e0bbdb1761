"""Integration test package.

These tests drive the review service, the HTTP API and the CLI end to
end against temporary SQLite databases.
"""
