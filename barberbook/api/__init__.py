"""HTTP API for the booking service."""
