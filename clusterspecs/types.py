"""
Domain types shared by the predicate builders and the database model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ClusterStatus(str, Enum):
    UP = "UP"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    TERMINATED = "TERMINATED"


class CommandStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DEPRECATED = "DEPRECATED"
    INACTIVE = "INACTIVE"


class ApplicationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DEPRECATED = "DEPRECATED"
    INACTIVE = "INACTIVE"


@dataclass
class ClusterCriteria:
    """
    Tags a job requires of the cluster it runs on.

    Not persisted. A job may declare several criteria in priority order;
    see executor.QueryExecutor.choose_clusters_for_job.
    """
    tags: Optional[List[str]] = field(default_factory=list)
