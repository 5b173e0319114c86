"""
Bookstore Test Suite

Tests are organized into:
- unit/: Models, repositories, services and security helpers
- integration/: HTTP API driven through the ASGI app
"""
