"""
HTTP interface for the presentation layer.
"""
