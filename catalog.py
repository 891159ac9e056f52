from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Resource:
    id: str
    name: str
    capacity: int  # informational only, every slot is single-occupancy


# 1. Configuration (bookable 30-minute windows, no lunch slot)
TIME_SLOTS: Tuple[str, ...] = (
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "13:00", "13:30", "14:00", "14:30", "15:00", "15:30",
    "16:00", "16:30", "17:00",
)

RESOURCES: Tuple[Resource, ...] = (
    Resource(id="R1", name="Meeting Room Alpha", capacity=10),
    Resource(id="R2", name="Projector Unit B", capacity=1),
    Resource(id="R3", name="Collaboration Pod 3", capacity=4),
)


@dataclass(frozen=True)
class SlotCatalog:
    """Fixed universe of time slots and resources.

    Built once at startup and never mutated, so it is safe to share between
    concurrent requests without any locking.
    """

    slots: Tuple[str, ...]
    resources: Tuple[Resource, ...]

    def __post_init__(self):
        if not self.slots:
            raise ValueError("Slot catalog must define at least one slot.")
        if len(set(self.slots)) != len(self.slots):
            raise ValueError("Slot labels must be unique.")
        resource_ids = [r.id for r in self.resources]
        if len(set(resource_ids)) != len(resource_ids):
            raise ValueError("Resource ids must be unique.")

    def list_slots(self) -> Tuple[str, ...]:
        return self.slots

    def list_resources(self) -> Tuple[Resource, ...]:
        return self.resources

    def get_resource(self, resource_id: str) -> Optional[Resource]:
        for resource in self.resources:
            if resource.id == resource_id:
                return resource
        return None

    def has_slot(self, slot: str) -> bool:
        return slot in self.slots

    @staticmethod
    def compute_available(all_slots: Iterable[str], booked_slots: Iterable[str]) -> List[str]:
        """Return ``all_slots`` without the booked ones, keeping the original order."""
        booked = set(booked_slots)
        return [slot for slot in all_slots if slot not in booked]


DEFAULT_CATALOG = SlotCatalog(slots=TIME_SLOTS, resources=RESOURCES)
