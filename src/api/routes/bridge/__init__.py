"""Endpoints de comando do bridge."""
