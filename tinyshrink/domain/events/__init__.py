"""Domain Event definitions.

Represents significant occurrences during API calls (initiated, deferred,
retried, succeeded, failed) that listeners may react to.
"""
