"""
Bookstore order management backend.

Authenticated customers place orders for books; administrators review
every order and move it through its status lifecycle.
"""

__version__ = "1.0.0"
