"""Tally - named counters backed by an append-only event ledger."""

__version__ = "0.1.0"
