"""Flust HTTP service."""
