"""HTTP API for driving reader sessions remotely."""
