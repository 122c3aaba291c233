"""Shared utilities: configuration, logging, exceptions, error handling."""
