"""Outbound email: template rendering, SMTP transport, digests."""
