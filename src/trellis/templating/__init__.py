"""Kida integration — template return values and environment setup."""
