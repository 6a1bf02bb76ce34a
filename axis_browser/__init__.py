"""
Top-level package for the axis browser.

This package exposes the search engine architecture (attribute metadata,
bindings, runtime state, query composition) plus config and persistence
services. Most code should import from submodules such as:
    axis_browser.core
    axis_browser.config
    axis_browser.services
"""

__all__: list[str] = []
