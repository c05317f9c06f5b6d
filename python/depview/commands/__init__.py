"""Subcommand implementations for the depview CLI."""
