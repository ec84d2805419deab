"""Contact Book: contact storage with search, pagination and spreadsheet import/export."""

__version__ = "0.1.0"
