"""Outbound services (email notifications)."""
