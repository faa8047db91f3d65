"""
Query executor for compiled cluster queries.

Translates a ClusterQuery into a SQLAlchemy select over the relational
model in database.py and runs it on a session. This is the only module
that issues SQL.
"""

from typing import List, Optional, Sequence

from sqlalchemy import ColumnElement, Select, and_, false, func, or_, select, true
from sqlalchemy.exc import SQLAlchemyError

from .database import Application, Cluster, ClusterCommand, ClusterTag, Command
from .env import get_settings
from .logger import get_logger
from .predicate import (
    CLUSTER_COMMANDS,
    COMMAND_APPLICATION,
    ClusterFields,
    ClusterQuery,
    Condition,
    Entity,
    FieldRef,
    LogicalOperator,
    Node,
    Operator,
    PredicateError,
    check_well_formed,
)
from .specs import find_by_application_and_command_and_criteria
from .types import ClusterCriteria

logger = get_logger()


class QueryExecutionError(RuntimeError):
    """Raised when the database fails while running a cluster query."""
    pass


_MODELS = {
    Entity.CLUSTER: Cluster,
    Entity.COMMAND: Command,
    Entity.APPLICATION: Application,
}

# Relationship attributes walked for each join requirement.
_JOIN_PATHS = {
    CLUSTER_COMMANDS: (Cluster.command_links, ClusterCommand.command),
    COMMAND_APPLICATION: (Command.application,),
}

ORDER_COLUMNS = {
    "updated": Cluster.updated,
    "created": Cluster.created,
    "name": Cluster.name,
    "status": Cluster.status,
    "id": Cluster.id,
}


def to_like_pattern(pattern: str) -> str:
    """Accept * and ? as aliases of the SQL LIKE wildcards % and _."""
    return pattern.replace("*", "%").replace("?", "_")


def _column(ref: FieldRef):
    model = _MODELS[ref.entity]
    if ref == ClusterFields.tags or not hasattr(model, ref.name):
        raise PredicateError(f"{ref} is not a comparable column")
    return getattr(model, ref.name)


def _membership(condition: Condition) -> ColumnElement:
    if condition.field != ClusterFields.tags:
        raise PredicateError(f"{condition.field} is not a collection")
    # EXISTS per tag: never multiplies cluster rows.
    return Cluster.tag_entries.any(ClusterTag.tag == condition.value)


def to_clause(node: Node) -> ColumnElement:
    """Render a predicate tree node as a SQLAlchemy boolean clause."""
    if isinstance(node, Condition):
        op = node.operator
        if op == Operator.MEMBER:
            return _membership(node)
        column = _column(node.field)
        if op == Operator.EQ:
            return column == node.value
        if op == Operator.LK:
            return column.like(to_like_pattern(node.value))
        if op == Operator.GTE:
            return column >= node.value
        if op == Operator.LT:
            return column < node.value
        raise PredicateError(f"Unsupported operator: {op}")

    parts = [to_clause(operand) for operand in node.operands]
    if node.logical_operator == LogicalOperator.AND:
        return and_(*parts) if parts else true()
    return or_(*parts) if parts else false()


def build_statement(query: ClusterQuery) -> Select:
    """
    Build SELECT clusters for a compiled query, without ordering or paging.

    Raises:
        PredicateError: the query is not well formed
    """
    check_well_formed(query)

    stmt = select(Cluster)
    for join in query.joins:
        if join not in _JOIN_PATHS:
            raise PredicateError(f"No relationship for join {join}")
        for attribute in _JOIN_PATHS[join]:
            stmt = stmt.join(attribute)
    if query.predicate.operands:
        stmt = stmt.where(to_clause(query.predicate))
    if query.distinct:
        stmt = stmt.distinct()
    return stmt


class QueryExecutor:
    """Runs compiled cluster queries against a SQLAlchemy session."""

    def __init__(self, session, page_size: Optional[int] = None):
        self.session = session
        self.page_size = page_size or get_settings().page_size

    def find_clusters(
        self,
        query: ClusterQuery,
        page: int = 0,
        limit: Optional[int] = None,
        order_by: str = "updated",
        descending: bool = True,
    ) -> List[Cluster]:
        """
        Return one page of clusters matching the query.

        Args:
            query: Compiled query from specs
            page: Zero-based page number
            limit: Page size (default: configured page size)
            order_by: One of ORDER_COLUMNS
            descending: Newest / largest first

        Raises:
            ValueError: bad paging or ordering arguments
            PredicateError: malformed query
            QueryExecutionError: database failure
        """
        if limit is None:
            limit = self.page_size
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")
        if limit <= 0:
            raise ValueError(f"limit must be > 0, got {limit}")
        if order_by not in ORDER_COLUMNS:
            allowed = ", ".join(sorted(ORDER_COLUMNS))
            raise ValueError(f"Cannot order clusters by '{order_by}' (expected one of: {allowed})")

        column = ORDER_COLUMNS[order_by]
        if descending:
            ordering = (column.desc(), Cluster.id.desc())
        else:
            ordering = (column.asc(), Cluster.id.asc())

        stmt = build_statement(query).order_by(*ordering).offset(page * limit).limit(limit)
        return self._run("find", query, lambda: list(self.session.scalars(stmt).all()))

    def count_clusters(self, query: ClusterQuery) -> int:
        """Number of distinct clusters matching the query."""
        inner = build_statement(query).subquery()
        stmt = select(func.count()).select_from(inner)
        return self._run("count", query, lambda: int(self.session.execute(stmt).scalar_one()))

    def choose_clusters_for_job(
        self,
        application_id: Optional[str],
        application_name: Optional[str],
        command_id: Optional[str],
        command_name: Optional[str],
        criterias: Sequence[ClusterCriteria],
    ) -> List[Cluster]:
        """
        Pick the clusters a job can run on.

        Criteria are tried in order; the first one that matches any cluster
        decides the result. Returns [] when none match.

        Raises:
            ValueError: no criteria given
        """
        if not criterias:
            raise ValueError("At least one cluster criteria is required")

        for index, criteria in enumerate(criterias):
            query = find_by_application_and_command_and_criteria(
                application_id, application_name, command_id, command_name, criteria
            )
            clusters = self.find_clusters(query)
            if clusters:
                logger.info(
                    f"Criteria {index} matched {len(clusters)} cluster(s)",
                    tags=criteria.tags,
                    command_id=command_id,
                    command_name=command_name,
                    clusters=[c.id for c in clusters],
                )
                return clusters

        logger.warning(
            "No cluster satisfies any criteria",
            criteria_count=len(criterias),
            command_id=command_id,
            command_name=command_name,
        )
        return []

    def _run(self, kind: str, query: ClusterQuery, fetch):
        logger.debug(f"Running {kind} query", query=query.to_dict())
        try:
            result = fetch()
        except SQLAlchemyError as e:
            logger.error(
                f"Cluster {kind} query failed: {e}",
                error_type=type(e).__name__,
                query=query.to_dict(),
            )
            logger.record_query_failure(kind, type(e).__name__)
            raise QueryExecutionError(f"Cluster {kind} query failed: {e}") from e

        rows = len(result) if isinstance(result, list) else 1
        logger.record_query(kind, rows)
        logger.debug(f"{kind} query returned {rows}", distinct=query.distinct)
        return result
