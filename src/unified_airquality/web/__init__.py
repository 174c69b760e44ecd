"""Read-only HTTP surface for the current values and history."""
