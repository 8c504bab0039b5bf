"""Adapters binding the sync domain to storage and HTTP backends."""
