"""MCN admin dashboard backend."""
