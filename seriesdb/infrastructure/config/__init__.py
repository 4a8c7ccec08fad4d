"""Configuration loading and schema discovery."""
