"""
Notes Backend — Services Layer
==============================

Service Inventory:
    - UserStore: user lookups and writes keyed by email, Google subject, id
    - EmailSender (abstract) / SMTPEmailSender: OTP delivery
    - OTPService: issue and verify email one-time passcodes
    - GoogleIdentityVerifier: validate Google ID tokens into identity claims
    - AccountLinker: resolve a Google identity to exactly one user
    - SessionTokenIssuer: sign and validate bearer session tokens
    - NoteService: per-user note CRUD

Each service is a module-level singleton; collaborators are constructor
arguments so tests can pass fakes.
"""
