"""Authentication.

Learn: Users log in with username/email + password and receive a JWT
access/refresh pair, delivered both as http-only cookies and in the
JSON body. Protected routes accept the access token from the cookie or
a Bearer header. Refresh tokens are single-use: see
vidshare.services.session_authority.
"""
