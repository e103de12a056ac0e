"""Workflow Sage - conversational workflow mapping and AI opportunity discovery."""

__version__ = "0.1.0"
