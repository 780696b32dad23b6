"""Repository crawling and scan orchestration."""
