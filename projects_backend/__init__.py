"""
Backend package for the projects portfolio API.

This package provides a FastAPI application with asset storage and record
storage abstractions so the same service can run against local disk, a
placeholder, or cloud object storage for project images.
"""
