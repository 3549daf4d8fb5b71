"""Shared infrastructure: errors, logging, HTTP."""
