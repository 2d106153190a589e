"""Discovery module for pools, manifest scanning and disclosure tiers."""

from poolbox.discovery.scanner import ManifestScanner
from poolbox.discovery.index import ManifestIndexer
from poolbox.discovery.pools import PoolRegistry
from poolbox.discovery.tiers import CapabilityDiscovery

__all__ = ["ManifestScanner", "ManifestIndexer", "PoolRegistry", "CapabilityDiscovery"]
