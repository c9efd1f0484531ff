"""Database adapter layer.

This package defines the ingestion contract that query engines consume
and ships a reference adapter backed by SQLite.
"""
