"""Domain Layer: value objects, request options, outcomes and errors.

Has no knowledge of HTTP libraries, files or consoles.
"""
