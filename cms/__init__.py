"""
Studio website and content management backend.

A FastAPI application that renders the public pages from JSON/HTML content in
blob storage, exposes the admin content API, and commits uploaded images to
the Git content repository.
"""
