"""
Task Manager API

User accounts, bearer-token sessions and per-user task management.
"""
