"""REST API for listing availability and reservations."""
