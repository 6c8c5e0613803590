"""Shared building blocks for transcript ingestion and retrieval.

Configuration, schemas, the error taxonomy, and the embedding and storage
services that both the ingestion pipeline and the search tool depend on.
"""
