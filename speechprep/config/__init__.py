"""Configuration for speechprep."""
