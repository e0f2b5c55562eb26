"""Ports, shared records and errors."""
