"""
Utility functions for core_backend.
"""
