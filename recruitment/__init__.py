"""Recruitment selection-pipeline backend."""
