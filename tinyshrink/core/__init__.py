"""Core Application Layer: the client, resource handle and outcome handle.

Connects the domain layer with the infrastructure layer through interfaces.
"""
