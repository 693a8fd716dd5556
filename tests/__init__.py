"""veoqueue test suite."""
