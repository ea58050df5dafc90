"""Publish the pull requests inserted into each umbrella build as GitHub issues."""

__version__ = "0.1.0"
