"""HTTP API for Workflow Sage."""
