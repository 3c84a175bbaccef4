"""Notifications app package.

Delivers booking notifications by email and as in-app messages. Message
bus handlers (``handlers.py``) queue Celery tasks (``tasks.py``) once a
booking change has been committed.
"""
