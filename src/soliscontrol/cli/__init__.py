"""Command line interface for solis-control."""
