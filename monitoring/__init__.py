"""
In-process monitoring utilities.
"""
