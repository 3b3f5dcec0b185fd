"""
Notes Backend — Middleware Package
==================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Rate Limit] → [Logging] → [CORS] → Route Handler

    1. Request ID first, so 429 bodies and access lines carry the id
    2. Rate Limit rejects floods before any database or SMTP work
    3. Logging records status and duration
    4. CORS handles preflight
"""
