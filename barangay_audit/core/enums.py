from enum import Enum


class EntityType(str, Enum):
    user = "User"
    sitio = "Sitio"
    system = "System"
    household = "Household"
    resident = "Resident"
    household_health = "HouseholdHealth"
    household_sanitation = "HouseholdSanitation"


# entity types a BHW sees on their dashboard feed
WORKER_FEED_ENTITY_TYPES = (
    EntityType.household.value,
    EntityType.resident.value,
    EntityType.household_health.value,
    EntityType.household_sanitation.value,
    EntityType.sitio.value,
)
