"""
Lambda handlers.
"""
