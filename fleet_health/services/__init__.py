"""Clients for the admin portal services."""
