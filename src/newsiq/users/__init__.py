"""Profiles, preferences and login webhook."""
