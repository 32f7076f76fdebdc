"""
Shared utilities for the Juri legal assistant
"""
