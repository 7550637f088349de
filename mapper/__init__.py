"""
Mapper: incremental coverage-hull tracking for a surveying agent.
"""

__version__ = "0.3.0"
