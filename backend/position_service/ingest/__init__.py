"""Brokerage export import: parsing, staging and the background import worker."""
