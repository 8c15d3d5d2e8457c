"""VidShare — video-sharing platform backend.

Users, tweets and the session token authority that issues, rotates and
revokes their access/refresh credentials.
"""

__version__ = "0.1.0"
