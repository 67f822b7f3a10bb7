"""Hardcover GraphQL data source: client, models, queries and mutations."""
