"""Build manifest reading and writing."""
