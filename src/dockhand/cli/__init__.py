"""Command-line interface (``dockhand``)."""
