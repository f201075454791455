"""Hosted-auth token verification and the current-user dependency."""
