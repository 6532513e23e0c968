"""API Resilience Implementations.

Contains services for handling API rate limits, backoff delay computation
and retries of transient failures.
Bounded Context: API Resilience
"""
