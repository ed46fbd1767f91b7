"""Caching Service Implementation.

Provides the file-backed implementation of the CacheStore interface:
one JSON document per cache type, TTL checked on read, atomic writes.
Bounded Context: Cache Management
"""
