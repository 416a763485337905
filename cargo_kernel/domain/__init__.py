"""
Pure domain core of the cargo kernel.

Nothing in this package touches the database, the filesystem or the wall
clock.  Services in cargo_kernel/services/ feed it snapshots and persist
what it returns.
"""
