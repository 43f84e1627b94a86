"""Long-term memory core for a chat assistant."""
