"""Polymarket Gamma listings, CLOB price history and record normalization."""
