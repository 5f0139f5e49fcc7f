"""
API package containing versioned routes.

A version subpackage (currently only ``v1``) exposes a top‑level
``router`` which includes all of its endpoints.  ``deps`` holds the
dependencies handlers use to reach services, and ``error_handlers``
maps the error hierarchy onto HTTP responses.
"""
