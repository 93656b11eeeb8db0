"""
Database package for Helpdesk.

Provides the SQLite connection manager, schema creation and the tag codec used
by the repositories.

Public API:
    - database: Global Database instance
    - db_connection: Global ConnectionManager instance
"""
