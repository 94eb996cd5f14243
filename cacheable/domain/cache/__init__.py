"""
Cache Domain Module

Key derivation, parameter binding, option value objects and the store
interface the cache layer consumes.
"""
