"""
API package - FastAPI routes and request/response schemas.
"""
