"""
RabbitHole research explorer backend.

Contains the FastAPI proxy in front of the Firecrawl search API plus the
markdown sanitizer, graph layout and PDF report helpers used to present
the retrieved sources.
"""
