"""HTTP API for the Unfiltered Voice service."""
