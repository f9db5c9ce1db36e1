"""MYR / USD / crypto currency converter service."""
