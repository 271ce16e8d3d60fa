"""Command-line entry points for inbox-features."""
