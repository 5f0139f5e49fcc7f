"""
Pydantic schema definitions for API payloads.

Users and posts each define their own models for request and response
bodies.  Schemas are separate from the SQLite rows so that the API
representation never exposes password hashes.
"""
