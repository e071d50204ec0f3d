"""
Book Catalog Package
--------------------
Client for the external Google Books catalog used to search for books and to
import their metadata into collections and wishlists.
"""

from app.book_catalog.google_books_client import GoogleBooksClient, get_google_books_client

__all__ = ["GoogleBooksClient", "get_google_books_client"]
