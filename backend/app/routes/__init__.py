"""
Notes Backend — API Routes Package
==================================

Route Inventory:
    - auth.py:    POST /api/auth/send-otp     (email a one-time passcode)
                  POST /api/auth/verify-otp   (exchange passcode for session token)
                  POST /api/auth/google       (exchange Google ID token for session token)
                  GET  /api/auth/me           (current user)
    - notes.py:   GET|POST /api/notes         (list / create, bearer required)
                  PUT|DELETE /api/notes/{id}  (update / delete, bearer required)
    - health.py:  GET  /health                (service health check)

Routes are thin: parse the body, call a service, shape the response.
"""
