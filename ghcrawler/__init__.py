"""Crawl GitHub repositories through the GraphQL API and store them in PostgreSQL."""

__version__ = "0.1.0"