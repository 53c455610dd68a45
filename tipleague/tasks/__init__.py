"""Settlement pipeline steps."""
