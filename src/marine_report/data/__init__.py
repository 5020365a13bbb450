"""Collection context, cache stores and the wave forecast cache."""
