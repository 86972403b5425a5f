"""
Book file access: load/save accounts, strategies, positions and fills.
"""

from data.book_store import Book, BookFileError, load_book, save_book

__all__ = ["Book", "BookFileError", "load_book", "save_book"]
