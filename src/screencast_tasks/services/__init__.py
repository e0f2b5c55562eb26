"""HTTP clients for the external services tasks talk to."""
