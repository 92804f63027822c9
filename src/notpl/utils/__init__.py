"""Small helpers shared across notpl."""
