"""
Interface layer.

Command-line entry points.
"""
