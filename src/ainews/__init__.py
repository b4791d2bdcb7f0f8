"""Your AI News — twice-daily AI news ingestion and multilingual digests."""
