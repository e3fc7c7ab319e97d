"""
Poll moderation for Pollguard.

- **policy.py**: Immunity and permission predicates.
- **poll_router.py**: Turns raw gateway events into poll removals.
- **audit_log.py**: Builds and sends the removal log embed.
"""
