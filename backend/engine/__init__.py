"""
Record store backends and the query executor.

A store answers filtered/paginated reads over CompanyRecord by interpreting the
filter AST. Today we ship an in-memory store and a DuckDB-backed store.
"""
