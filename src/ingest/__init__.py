"""Datasource ingestion.

This package fetches datasource bytes, streams archives and parses
CSV, XML and NDJSON files into in-memory data.
"""
