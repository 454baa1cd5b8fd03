"""
RAG (Retrieval-Augmented Generation) engine components for the knowledge-base chat system.

This package extracts search keywords from user queries, retrieves and ranks
tenant-scoped documents, and assembles the prompt context block.
"""
