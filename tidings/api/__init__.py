"""Tidings HTTP ingress layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application that validates user-activity events and publishes
them to the delivery channel.

Usage
-----
Create and run the application::

    from tidings.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # with the activity endpoint

"""

from tidings.api.app import create_app

__all__ = ["create_app"]
