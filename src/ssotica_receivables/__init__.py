"""Fetch a customer's current installment from SSOtica and request write-offs."""

__version__ = "1.0.0"
