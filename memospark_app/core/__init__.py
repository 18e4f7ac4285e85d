"""Core infrastructure: bootstrap, errors, signals and polling."""
