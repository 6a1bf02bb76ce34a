"""
Core engine: attribute metadata, filter definitions and state machines,
binding tree, runtime state, and the query composer.
"""
