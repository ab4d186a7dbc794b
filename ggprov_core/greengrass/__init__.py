from ggprov_core.greengrass.interfaces import GreengrassClient, IotClient
from ggprov_core.greengrass.types import (
    EMPTY_DEFINITION,
    GgDefinitionEntry,
    GgDefinitionVersion,
    GgGroupInfo,
    GgGroupVersion,
    IotEndpoints,
    ProvisionedThing,
    ThingInfo,
)

__all__ = [
    "EMPTY_DEFINITION",
    "GgDefinitionEntry",
    "GgDefinitionVersion",
    "GgGroupInfo",
    "GgGroupVersion",
    "GreengrassClient",
    "IotClient",
    "IotEndpoints",
    "ProvisionedThing",
    "ThingInfo",
]
