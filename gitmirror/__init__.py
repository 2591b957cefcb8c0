"""Serve git requests from local mirrors of a master host."""
