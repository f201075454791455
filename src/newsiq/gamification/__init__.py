"""Achievements, points ledger, reading streaks and leaderboards."""
