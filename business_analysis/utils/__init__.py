"""Small shared utilities: rounding, address parsing, validation, throttling."""
