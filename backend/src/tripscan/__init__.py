"""
Tripscan - earnings screenshot extraction for fleet driver reports.
"""

__version__ = "0.1.0"
