"""CONVERGE ARENA web application."""
