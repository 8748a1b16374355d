"""
Shared helpers for command execution, responses and audit logging.
"""
