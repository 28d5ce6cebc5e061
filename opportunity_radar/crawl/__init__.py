"""Crawl orchestration."""
from .orchestrator import ConnectorBatch, CrawlOrchestrator, CrawlOutcome

__all__ = ["CrawlOrchestrator", "CrawlOutcome", "ConnectorBatch"]
