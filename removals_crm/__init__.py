"""Removals CRM lead ingestion and assignment service."""
