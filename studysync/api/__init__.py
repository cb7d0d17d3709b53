"""Remote store HTTP server."""
