"""Kafka client construction."""

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer

from .config import ArchiverSettings, KafkaSettings


def kafka_client_options(settings: KafkaSettings) -> dict:
    """Connection options shared by consumers and producers."""
    options = {"bootstrap_servers": settings.broker}
    if settings.username:
        options.update(
            security_protocol="SASL_PLAINTEXT",
            sasl_mechanism="SCRAM-SHA-256",
            sasl_plain_username=settings.username,
            sasl_plain_password=settings.password,
        )
    return options


def create_consumer(settings: ArchiverSettings) -> AIOKafkaConsumer:
    """Consumer subscribed to the control and trace topics. Not started."""
    consumer = AIOKafkaConsumer(
        group_id=settings.consumer_group,
        enable_auto_commit=False,
        session_timeout_ms=6000,
        **kafka_client_options(settings),
    )
    consumer.subscribe(topics=[settings.control_topic, settings.trace_topic])
    return consumer


def create_producer(settings: KafkaSettings) -> AIOKafkaProducer:
    """Producer for the trace generator. Not started."""
    return AIOKafkaProducer(**kafka_client_options(settings))
