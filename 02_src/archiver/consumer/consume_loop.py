"""Consume loop driving the archiving controllers."""

from typing import Any, Callable, Protocol

from aiokafka.errors import KafkaError
from aiokafka.structs import TopicPartition

from ..classifier import IMessageClassifier
from ..controller import IArchivingController
from ..logging_config import get_logger
from ..metrics import IMetricsReporter
from ..models import ControllerAction, MessageEnvelope

logger = get_logger(__name__)

ControllerFactory = Callable[[], IArchivingController]

# Key of the shared controller when partitions are not isolated
SHARED = -1


class IBusConsumer(Protocol):
    """The subset of AIOKafkaConsumer the loop relies on."""

    async def getone(self) -> Any:
        """Wait for the next record."""
        ...

    async def commit(self, offsets: dict[TopicPartition, int]) -> None:
        """Commit consumed positions."""
        ...


class ConsumeLoop:
    """
    Processes one record to completion before fetching the next.

    Each record is classified, handed to the controller owning its
    partition, reported to metrics and then committed, whatever the
    outcome.
    """

    def __init__(
        self,
        consumer: IBusConsumer,
        classifier: IMessageClassifier,
        controller_factory: ControllerFactory,
        reporter: IMetricsReporter,
        isolate_partitions: bool = False,
    ):
        self._consumer = consumer
        self._classifier = classifier
        self._controller_factory = controller_factory
        self._reporter = reporter
        self._isolate_partitions = isolate_partitions
        self._controllers: dict[int, IArchivingController] = {}

    @property
    def controllers(self) -> dict[int, IArchivingController]:
        return dict(self._controllers)

    def controller_for(self, partition: int) -> IArchivingController:
        """Controller owning ``partition``, created on first use."""
        key = partition if self._isolate_partitions else SHARED
        controller = self._controllers.get(key)
        if controller is None:
            controller = self._controller_factory()
            self._controllers[key] = controller
        return controller

    async def run(self) -> None:
        """Consume until cancelled."""
        while True:
            try:
                record = await self._consumer.getone()
            except KafkaError as e:
                logger.warning("Kafka error: %s", e)
                continue

            await self.process(record)

    async def process(self, record: Any) -> ControllerAction:
        """Classify, act, report and commit one record."""
        envelope = MessageEnvelope.from_record(record)
        logger.debug("Message received", extra={"context": envelope.describe()})

        classified = self._classifier.classify(envelope.topic, envelope.payload)
        controller = self.controller_for(envelope.partition)
        action = await controller.handle(classified, envelope)

        self._reporter.observe(action)
        await self._commit(envelope)
        return action

    async def shutdown(self) -> None:
        """Discard every open session."""
        for controller in self._controllers.values():
            await controller.shutdown()

    async def _commit(self, envelope: MessageEnvelope) -> None:
        offsets = {TopicPartition(envelope.topic, envelope.partition): envelope.offset + 1}
        try:
            await self._consumer.commit(offsets)
        except KafkaError as e:
            logger.warning(
                "Failed to commit offset: %s",
                e,
                extra={"context": envelope.describe()},
            )
