"""Shared configuration for ledger processes."""
