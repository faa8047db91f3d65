"""Cluster search and job resource matching as composable query predicates."""

__version__ = "0.1.0"

from .predicate import ClusterQuery, PredicateError
from .specs import (
    compile_cluster_filter,
    compile_resource_match,
    find_by_application_and_command_and_criteria,
    find_by_name_and_statuses_and_tags_and_update_time,
)
from .types import ApplicationStatus, ClusterCriteria, ClusterStatus, CommandStatus

__all__ = [
    "__version__",
    "ClusterQuery",
    "PredicateError",
    "compile_cluster_filter",
    "compile_resource_match",
    "find_by_application_and_command_and_criteria",
    "find_by_name_and_statuses_and_tags_and_update_time",
    "ApplicationStatus",
    "ClusterCriteria",
    "ClusterStatus",
    "CommandStatus",
]
