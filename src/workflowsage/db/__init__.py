"""Database access layer for Workflow Sage."""
