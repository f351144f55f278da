"""Account records and access control for the enforcement engine."""
