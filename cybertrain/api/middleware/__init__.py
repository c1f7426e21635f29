"""
API middleware.
"""
