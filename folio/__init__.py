"""Folio: blog and portfolio content API."""
