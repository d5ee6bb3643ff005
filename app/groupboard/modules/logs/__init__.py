"""
Activity log module.

Append-only log entries inside a Snapshot, with single-entry, per-group and
per-group-per-day deletion (the latter also purges lifecycle markers and orphans).
"""
