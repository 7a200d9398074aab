"""Boundary schemas shared by the HTTP client and the UI forms."""
