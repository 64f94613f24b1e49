"""Accounts, error kinds and the account service."""
