"""Uniform adapters over queueing (SQS, Beanstalkd, Redis) and storage
(DynamoDB, MongoDB, ClickHouse) backends for analytics event pipelines."""

__version__ = "0.1.0"
