"""Notification fan-out and delivery engine for multi-tenant school backends.

The package is laid out in layers: ``domain`` holds plain entities and errors,
``infrastructure`` the database, repositories and push provider adapters,
``application`` the delivery engine and use cases, and ``interfaces`` the
FastAPI surface.
"""
