"""Core infrastructure: configuration, database engines, logging, errors."""
