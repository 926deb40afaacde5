"""Saltbox host helper: cached Ansible tag resolution and the motd status dashboard."""

__version__ = "0.1.0"
