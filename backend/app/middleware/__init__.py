# Middleware package init
"""
Flock Backend — Middleware Package
====================================

Cross-cutting request handling applied to every route.

Chain (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

The access log runs inside the request-id middleware so each line carries
the request's correlation id.
"""
