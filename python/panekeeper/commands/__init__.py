"""CLI command implementations. Each returns a process exit code."""
