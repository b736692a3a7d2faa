"""Authentication and identity.

Learn: Two credentials, one identity:
1. Refresh cookie → sessions table → user id (set by register/login)
2. Bearer JWT access token → "sub" claim → user id

Both resolve to a single integer user id that scopes ledger queries.
"""
