"""Project discovery: scanning, classification, building, sizing, timing."""

from cargo_projects.discovery.builder import ProjectBuilder
from cargo_projects.discovery.classifier import CargoMetadataResolver, MetadataResolver
from cargo_projects.discovery.pipeline import DiscoveryPipeline
from cargo_projects.discovery.scanner import scan_for_manifests
from cargo_projects.discovery.timing import BuildTimeEstimator

__all__ = [
    "BuildTimeEstimator",
    "CargoMetadataResolver",
    "DiscoveryPipeline",
    "MetadataResolver",
    "ProjectBuilder",
    "scan_for_manifests",
]
