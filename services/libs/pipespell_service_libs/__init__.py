"""
Pipespell Service Libraries Package.

Shared infrastructure used by pipespell services: structured logging,
structured errors, request correlation and HTTP metrics middleware.
"""
