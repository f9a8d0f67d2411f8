"""Inkpress — blogging platform backend.

Serves the blog feed to the browser client and owns the account side:
signup, signin, signout, password reset by email, and profile photos.
"""

__version__ = "0.1.0"
