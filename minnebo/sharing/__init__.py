"""Sharing: signed share store, feedback counts and preview rendering."""
