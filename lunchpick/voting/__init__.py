"""
Lunch polls.

Responsibilities:
- Restaurant polls and date/time-slot polls with toggle and move-vote semantics.
- Lazy closing once the deadline has passed, with a first-wins tie-break.
"""
