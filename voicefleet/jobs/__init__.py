"""Background jobs run by the worker process."""
