"""
Application package for the session cache.
"""
