"""Per-source fetchers and normalizers, each a FeedSource configuration."""
