"""Operational scripts for the Unfiltered Voice service."""
