"""
Query specifications for clusters.

Both builders are pure functions of their arguments: they return a
ClusterQuery describing which clusters qualify and never touch storage.
Absent or blank arguments simply add no condition.
"""

from typing import Iterable, List, Optional, Union

from .normalize import (
    clean_statuses,
    clean_tags,
    epoch_millis_to_datetime,
    is_not_blank,
    is_not_empty,
)
from .predicate import (
    CLUSTER_COMMANDS,
    COMMAND_APPLICATION,
    ApplicationFields,
    ClusterFields,
    ClusterQuery,
    CommandFields,
    Condition,
    Join,
    Node,
    and_,
    equals,
    greater_or_equal,
    less_than,
    like,
    member_of,
    or_,
)
from .types import ApplicationStatus, ClusterCriteria, ClusterStatus, CommandStatus


def _tag_conditions(tags: Optional[Iterable[str]]) -> List[Condition]:
    # Every tag must be present on the cluster, so one condition per tag.
    return [member_of(tag, ClusterFields.tags) for tag in clean_tags(tags) or []]


def find_by_name_and_statuses_and_tags_and_update_time(
    name: Optional[str] = None,
    statuses: Optional[Iterable[Union[ClusterStatus, str]]] = None,
    tags: Optional[Iterable[str]] = None,
    min_update_time: Optional[int] = None,
    max_update_time: Optional[int] = None,
) -> ClusterQuery:
    """
    Build the query behind a cluster search.

    Args:
        name: LIKE pattern for the cluster name
        statuses: Cluster matches if it has any of these statuses
        tags: Cluster must carry every one of these tags
        min_update_time: Inclusive lower bound on updated, epoch millis
        max_update_time: Exclusive upper bound on updated, epoch millis

    Returns:
        ClusterQuery over Cluster fields only (no joins)
    """
    predicates: List[Node] = []
    if is_not_blank(name):
        predicates.append(like(ClusterFields.name, name))
    if min_update_time is not None:
        predicates.append(
            greater_or_equal(ClusterFields.updated, epoch_millis_to_datetime(min_update_time))
        )
    if max_update_time is not None:
        # Upper bound is exclusive: the window is [min, max).
        predicates.append(
            less_than(ClusterFields.updated, epoch_millis_to_datetime(max_update_time))
        )
    predicates.extend(_tag_conditions(tags))

    wanted = clean_statuses(statuses, ClusterStatus)
    if wanted:
        predicates.append(or_(*[equals(ClusterFields.status, status) for status in wanted]))

    return ClusterQuery(predicate=and_(*predicates))


def find_by_application_and_command_and_criteria(
    application_id: Optional[str],
    application_name: Optional[str],
    command_id: Optional[str],
    command_name: Optional[str],
    criteria: ClusterCriteria,
) -> ClusterQuery:
    """
    Build the query for clusters able to run a job.

    A command filter joins Cluster to Command and requires an ACTIVE command
    on an UP cluster. Only then is an application filter considered, joining
    Command to Application and requiring an ACTIVE application. An
    application filter given without a command filter is ignored.

    Ids win over names when both are given.

    Raises:
        ValueError: criteria is None
    """
    if criteria is None:
        raise ValueError("criteria is required")

    predicates: List[Node] = []
    joins: List[Join] = []

    if is_not_blank(command_id) or is_not_blank(command_name):
        joins.append(CLUSTER_COMMANDS)
        if is_not_blank(command_id):
            predicates.append(equals(CommandFields.id, command_id))
        else:
            predicates.append(equals(CommandFields.name, command_name))
        predicates.append(equals(CommandFields.status, CommandStatus.ACTIVE))
        predicates.append(equals(ClusterFields.status, ClusterStatus.UP))

        if is_not_empty(application_id) or is_not_empty(application_name):
            joins.append(COMMAND_APPLICATION)
            if is_not_empty(application_id):
                predicates.append(equals(ApplicationFields.id, application_id))
            else:
                predicates.append(equals(ApplicationFields.name, application_name))
            predicates.append(equals(ApplicationFields.status, ApplicationStatus.ACTIVE))

    predicates.extend(_tag_conditions(criteria.tags))

    return ClusterQuery(predicate=and_(*predicates), joins=tuple(joins), distinct=True)


compile_cluster_filter = find_by_name_and_statuses_and_tags_and_update_time
compile_resource_match = find_by_application_and_command_and_criteria
