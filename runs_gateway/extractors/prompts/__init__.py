"""Prompts for the extraction service."""
