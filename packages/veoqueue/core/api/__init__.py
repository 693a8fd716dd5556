"""Remote HTTP APIs."""
