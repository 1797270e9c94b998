"""Split a restaurant bill between the people who shared it."""
