"""Transcript ingestion pipeline.

Fetches transcripts, splits them into overlapping character windows, embeds
each window and appends the chunks to the vector store.
"""
