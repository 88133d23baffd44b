"""Transport bindings for the request engine."""
