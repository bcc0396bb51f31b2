"""
Unit tests package.

Contains isolated tests for slot generation, availability, allocation,
queue and status logic, run against mocked repositories and a fixed clock.
"""
