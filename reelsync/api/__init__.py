"""REST API for render jobs."""
