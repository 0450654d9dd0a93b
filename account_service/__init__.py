"""
Account Balance Service

Bank-style accounts with per-account locked balance operations and a
transaction audit trail that records both successful and failed attempts.
"""

__version__ = "1.0.0"
