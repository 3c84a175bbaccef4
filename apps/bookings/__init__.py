"""Bookings app package.

The booking aggregate and its lifecycle: creation with conflict
detection under a court-level row lock, approval, rejection,
cancellation with time-based refunds, rescheduling, check-in/out and the
periodic status sweeps run by Celery beat.
"""
