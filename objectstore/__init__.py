"""
objectstore - a thin facade over S3-compatible object storage.

This package contains:
- core: Value types and content-type helpers (no external dependencies)
- infrastructure: The boto3-backed storage client and its in-memory mock
- config: Application configuration
"""

__version__ = "0.1.0"
