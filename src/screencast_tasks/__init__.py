"""Durable background task scheduler for the screencast site."""

__version__ = "0.1.0"
