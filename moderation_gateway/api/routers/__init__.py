"""
API route handlers for different endpoint groups.
"""
