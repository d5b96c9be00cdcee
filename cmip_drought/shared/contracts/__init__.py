"""Pydantic contracts for climate series."""
