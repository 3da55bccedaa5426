"""Command-line client (``airq``) for the air quality dashboard service.

The Typer application is ``cli.app.app``; it is not re-exported here so that
``cli.app`` keeps resolving to the module.
"""
