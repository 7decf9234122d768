"""
Ticket lifecycle desk: support API client and dispatcher/technician views
"""

__version__ = "0.1.0"
