"""Helpers shared by the openapi-diff action scripts."""
