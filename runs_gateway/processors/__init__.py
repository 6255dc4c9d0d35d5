"""Message processing pipelines: dispatch, reconciliation, CSV bulk operations."""
