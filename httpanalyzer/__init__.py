"""
HTTP Analyzer

Passive classification of observed HTTP exchanges for security triage.
"""

__version__ = "0.1.0"
