"""Logging configuration and logger selection."""
