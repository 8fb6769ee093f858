"""
FastAPI application layer for the moderation gateway.

Exposes the moderation endpoint used by the review, photo upload and
avatar forms, plus health probes for deployment.
"""
