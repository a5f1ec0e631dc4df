"""
External provider clients and shared error types.
"""
