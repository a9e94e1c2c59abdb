"""Core domain, interfaces, models and errors."""
