"""Cross-cutting API routes. Feature routes live in their modules."""
