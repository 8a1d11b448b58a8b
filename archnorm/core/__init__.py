"""Core normalization library.

Everything under ``archnorm.core`` is synchronous and free of I/O: it turns an
already-materialized raw tree into immutable, typed values.
"""
