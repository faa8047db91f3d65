"""
Pytest configuration and shared fixtures.
"""

import os

# Keep test runs from writing log files into the working directory.
os.environ.setdefault("CLUSTERSPECS_LOG_TO_FILE", "false")

from types import SimpleNamespace

import pytest

from clusterspecs.database import Application, Cluster, Command, get_session, init_database
from clusterspecs.executor import QueryExecutor
from clusterspecs.normalize import epoch_millis_to_datetime
from clusterspecs.types import ApplicationStatus, ClusterStatus, CommandStatus

# Update times of the seeded clusters, epoch millis.
T_PROD_EAST = 1_000_000
T_PROD_WEST = 2_000_000
T_TEST_GPU = 3_000_000
T_ADHOC = 4_000_000


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "clusters.db"
    init_database(path)
    return path


@pytest.fixture
def db_session(db_path):
    """Create a temporary database and return a session."""
    session = get_session(db_path)
    yield session
    session.close()


@pytest.fixture
def catalog(db_session) -> SimpleNamespace:
    """
    Seeded clusters, commands and applications.

    prod-east  UP              hadoop gpu prod  hive-cmd, spark-submit x2
    prod-west  OUT_OF_SERVICE  hadoop prod      hive-cmd, spark-submit (v1)
    test-gpu   UP              gpu test         pig (inactive), hive-cmd
    adhoc      TERMINATED      adhoc            -
    """
    spark = Application(id="app-spark", name="spark", status=ApplicationStatus.ACTIVE)
    legacy = Application(id="app-legacy", name="myApp", status=ApplicationStatus.INACTIVE)

    hive = Command(id="cmd-hive", name="hive-cmd", status=CommandStatus.ACTIVE, application=legacy)
    spark_v1 = Command(id="cmd-spark-1", name="spark-submit", status=CommandStatus.ACTIVE, application=spark)
    spark_v2 = Command(id="cmd-spark-2", name="spark-submit", status=CommandStatus.ACTIVE, application=spark)
    pig = Command(id="cmd-pig", name="pig", status=CommandStatus.INACTIVE)

    prod_east = Cluster(
        id="c-prod-east",
        name="prod-east",
        status=ClusterStatus.UP,
        tags={"hadoop", "gpu", "prod"},
        commands=[hive, spark_v1, spark_v2],
        updated=epoch_millis_to_datetime(T_PROD_EAST),
    )
    prod_west = Cluster(
        id="c-prod-west",
        name="prod-west",
        status=ClusterStatus.OUT_OF_SERVICE,
        tags={"hadoop", "prod"},
        commands=[hive, spark_v1],
        updated=epoch_millis_to_datetime(T_PROD_WEST),
    )
    test_gpu = Cluster(
        id="c-test-gpu",
        name="test-gpu",
        status=ClusterStatus.UP,
        tags={"gpu", "test"},
        commands=[pig, hive],
        updated=epoch_millis_to_datetime(T_TEST_GPU),
    )
    adhoc = Cluster(
        id="c-adhoc",
        name="adhoc",
        status=ClusterStatus.TERMINATED,
        tags={"adhoc"},
        updated=epoch_millis_to_datetime(T_ADHOC),
    )

    db_session.add_all([prod_east, prod_west, test_gpu, adhoc])
    db_session.commit()

    return SimpleNamespace(
        prod_east=prod_east,
        prod_west=prod_west,
        test_gpu=test_gpu,
        adhoc=adhoc,
        hive=hive,
        spark_v1=spark_v1,
        spark_v2=spark_v2,
        pig=pig,
        spark=spark,
        legacy=legacy,
        times={
            "prod-east": T_PROD_EAST,
            "prod-west": T_PROD_WEST,
            "test-gpu": T_TEST_GPU,
            "adhoc": T_ADHOC,
        },
    )


@pytest.fixture
def executor(db_session, catalog) -> QueryExecutor:
    return QueryExecutor(db_session)
