"""Configuration, logging and performance helpers."""
