"""
Domain layer - Core business entities and domain logic.

This layer contains the record entity and the error taxonomy,
independent of any infrastructure or framework concerns.
"""
