"""In-process services backing the request engine."""
