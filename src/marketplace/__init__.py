"""Age-restricted goods delivery marketplace."""
