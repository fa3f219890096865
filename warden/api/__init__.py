"""Warden HTTP API layer.

This package provides the Falcon ASGI application: health probes and the
GitHub webhook delivery endpoint.

Usage
-----
Create and run the application::

    from warden.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # with the webhook endpoint
"""

from warden.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
