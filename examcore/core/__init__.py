"""Process-level setup shared by the app and scripts."""
