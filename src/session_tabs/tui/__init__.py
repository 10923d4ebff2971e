"""Textual front end for session-tabs."""
