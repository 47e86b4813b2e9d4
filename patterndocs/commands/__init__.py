"""Command implementations for the patterndocs CLI."""
