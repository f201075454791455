"""ORM base, models and dialect helpers."""
