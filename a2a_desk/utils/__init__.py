"""Shared utilities for paths and log redaction."""
