"""
Schemas package.

Pydantic models for request bodies and service/API read shapes.
"""
