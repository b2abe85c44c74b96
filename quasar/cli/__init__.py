"""
Command line entry points
"""
