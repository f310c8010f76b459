"""
Shared infrastructure: structured logging and the exception hierarchy.
"""
