"""Quiz attempt, grading and reconciliation service."""
