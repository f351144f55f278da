"""Appeal submission and admin resolution."""
