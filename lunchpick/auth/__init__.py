"""
Name-based login.

Responsibilities:
- Validate names and create users on first login.
- Keep the session user and gate admin routes.
- Promote a user to admin when the bcrypt-checked admin code matches.
"""
