"""
CLI layer for audit-tables.

Commands delegate to the library (``generate_statements``,
``execute_statements``, ``probe_status``); this package only handles
argument parsing, connection setup and terminal output.

Entry point::

    audit-tables --help
"""
