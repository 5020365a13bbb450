"""Data models for Marine Report."""
