"""Self-hosted media/paste gallery: content store and upload ingestion."""

__version__ = "0.1.0"
