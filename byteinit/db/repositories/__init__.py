"""
Per-domain repository modules for database access.

Functions take a `Session` first and return ORM objects, read models or
plain values. Interaction toggles only flush so the caller can commit them
together with the notification they produce.
"""
