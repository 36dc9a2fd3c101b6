from dataclasses import dataclass

from spacecounter.broadcaster import Broadcaster
from spacecounter.lifecycle import ConnectionLifecycle
from spacecounter.processor import UpdateProcessor
from spacecounter.registry import ConnectionRegistry
from spacecounter.settings import Settings
from spacecounter.spaces import SpaceTable


@dataclass
class Hub:
    """All shared state of one running app, wired together."""

    registry: ConnectionRegistry
    spaces: SpaceTable
    broadcaster: Broadcaster
    processor: UpdateProcessor
    lifecycle: ConnectionLifecycle

    @classmethod
    def from_settings(cls, settings: Settings) -> "Hub":
        registry = ConnectionRegistry()
        spaces = SpaceTable(reject_unknown_modes=settings.reject_unknown_modes)
        broadcaster = Broadcaster(registry)
        processor = UpdateProcessor(registry, spaces, broadcaster)
        lifecycle = ConnectionLifecycle(registry, processor)
        return cls(
            registry=registry,
            spaces=spaces,
            broadcaster=broadcaster,
            processor=processor,
            lifecycle=lifecycle,
        )
