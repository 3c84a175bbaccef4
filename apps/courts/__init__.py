"""Courts app package.

Venues, courts and everything that decides when a court can be booked
and what it costs: pricing and discount rules, weekly operating hours
with breaks, and date-specific availability exceptions. The pure logic
lives in ``domain/`` (pricing resolver, availability checker, slot
enumerator).
"""
