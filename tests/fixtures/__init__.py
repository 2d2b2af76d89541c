"""Shared pytest fixtures for device health tests."""
