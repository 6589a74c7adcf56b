"""Agent hook entry points.

Each hook reads one JSON record from stdin, does its work and exits 0 even on
failure so the agent session is never blocked. Problems go to the log file.
"""
