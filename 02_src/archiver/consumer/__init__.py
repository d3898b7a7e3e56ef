"""Consumer module."""

from .consume_loop import ConsumeLoop, ControllerFactory, IBusConsumer

__all__ = ["ConsumeLoop", "ControllerFactory", "IBusConsumer"]
