"""Authentication primitives.

Learn: Two independent signed-token families, both stateless JWTs:
1. Session tokens → signin sets them in an HTTP-only cookie (24h)
2. Reset tokens → mailed as part of a link, short-lived, separate secret

Passwords are only ever stored as bcrypt hashes.
"""
