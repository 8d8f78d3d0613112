"""Upstream sources (Polymarket Gamma/CLOB, Yahoo Finance) and the fetch cycle."""
