"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the remote API, the file
system, the console) by implementing the interfaces defined in the domain layer.
Also includes the resilience services (rate limiting, backoff, retries).
"""
