"""
Enrollment Sentinel - enrollment risk analytics engine and API.
"""

__version__ = "1.0.0"
