"""
Shared Kernel

Building blocks used by the court and booking contexts: aggregate and event
base classes, value objects such as ``TimeRange``, the typed domain errors,
the unit of work with its message bus, an injectable clock, and the
DRF-facing infrastructure (exception handler, pagination, row locking).
"""
