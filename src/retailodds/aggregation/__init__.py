"""Source merging, deduplication and retailer bucketing."""

from retailodds.aggregation.aggregator import SourceBatch, aggregate, empty_buckets, merge_sources

__all__ = ["SourceBatch", "aggregate", "empty_buckets", "merge_sources"]
