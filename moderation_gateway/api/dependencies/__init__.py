"""
FastAPI dependencies for request processing.

Dependencies provide shared objects, such as the model manager and the
moderation gateway, that are injected into API endpoints.
"""
