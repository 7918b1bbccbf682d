"""
Spark session factory and runtime configuration for the compaction service.
"""

from __future__ import annotations

import logging

from pyspark.sql import SparkSession

from microservices.compaction.src.output_compression import OutputCompressionProperties

logger = logging.getLogger(__name__)

_HADOOP_PREFIX = "spark.hadoop."


def get_spark_session(
    app_name: str = "spark-compaction",
    master: str | None = None,
    extra_config: dict[str, str] | None = None,
) -> SparkSession:
    """Build (or retrieve) a configured SparkSession.

    Parameters
    ----------
    app_name : str
        Spark application name.
    master : str | None
        Spark master URL.  ``None`` lets spark-submit / cluster decide.
    extra_config : dict | None
        Additional Spark configuration key-value pairs.
    """
    builder = SparkSession.builder.appName(app_name)

    if master:
        builder = builder.master(master)

    for key, value in (extra_config or {}).items():
        builder = builder.config(key, value)

    return builder.getOrCreate()


def apply_output_properties(spark: SparkSession, props: OutputCompressionProperties) -> None:
    """Push output compression settings into a running session.

    ``spark.hadoop.*`` keys only reach Hadoop at context start-up, so on a
    live session they are written to the Hadoop configuration directly
    (prefix stripped).  Everything else goes to the SQL conf.
    """
    hadoop_conf = spark.sparkContext._jsc.hadoopConfiguration()
    for key, value in props.to_spark_conf().items():
        if key.startswith(_HADOOP_PREFIX):
            hadoop_conf.set(key[len(_HADOOP_PREFIX):], value)
        elif key.startswith("spark."):
            spark.conf.set(key, value)
        else:
            hadoop_conf.set(key, value)
        logger.debug("[spark] %s=%s", key, value)
