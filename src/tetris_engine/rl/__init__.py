"""Command-line agents that play the gymnasium environment."""
