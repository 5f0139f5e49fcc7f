"""
Service layer abstraction.

Each service encapsulates business logic for a domain and is built
with explicit configuration (database path, salt, capacity) by
``create_app``.  API handlers reach them through ``api.deps``.
"""
