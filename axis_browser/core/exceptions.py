

class AxisBrowserError(Exception):
    """Base exception for all axis_browser errors"""
    pass


class ConfigError(AxisBrowserError):
    """
    Invalid or inconsistent configuration-time declaration

    bad attribute names, unknown type aliases, conflicting registrations,
    illegal filter options, unresolvable binding accessors, etc
    """
    pass
