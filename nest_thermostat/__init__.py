"""Command-line controller for Nest thermostats."""

__version__ = "0.1.0"
