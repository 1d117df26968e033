"""
Process-wide response cache for the company endpoints.
"""
