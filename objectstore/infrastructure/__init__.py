"""
Infrastructure layer - external service integrations.

- storage: Object storage (any S3-compatible backend via boto3)

These wrappers translate between the external client's formats and our
value types in objectstore.core.
"""
