"""Append-only violation ledger and the reputation model derived from it."""
