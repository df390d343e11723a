"""
Request throttling.

Responsibilities:
- Count requests per client over a trailing time window.
- Refuse requests once a client exhausts its allowance.
"""
