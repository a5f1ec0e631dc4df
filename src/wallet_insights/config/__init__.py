"""
Configuration management for the wallet insights service.
"""
