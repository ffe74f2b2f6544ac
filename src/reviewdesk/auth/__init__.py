"""Authentication and authorization.

Learn: Accounts log in with email/password and receive a signed JWT that
carries their id, email and role. Every protected route resolves that token
into an IdentityClaim through the dependencies in this package:

- require_auth  → token must be present and valid
- optional_auth → token may be absent; if present it must be valid
- require_admin → require_auth plus role == admin
"""
