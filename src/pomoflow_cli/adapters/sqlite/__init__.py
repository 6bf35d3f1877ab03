"""SQLite local vault adapter."""
