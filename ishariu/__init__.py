"""Application package for the iShariu account and course backend.

This package exposes the record store, service and model modules used by
the FastAPI application. It is intentionally lightweight; individual
modules contain the concrete implementations and documentation.
"""
