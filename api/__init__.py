"""
HTTP API routers for the knowledge-base retrieval service.
"""
