"""Arena data collector: status API, shared models and utilities."""
