"""
Company records as seen by the engine (read-only).
"""
