"""Test package marker.

Making `tests/` a package gives test modules fully-qualified names, so files
that share a basename in different directories do not collide on import.
"""
