from __future__ import annotations

from ggprov_core.devices.chain import HandlerChain
from ggprov_core.devices.handlers.core_config import CoreConfigHandler, build_core_config
from ggprov_core.devices.handlers.create_group_version import CreateGroupVersionHandler
from ggprov_core.devices.handlers.existing_association import (
    ExistingAssociationHandler,
)
from ggprov_core.devices.handlers.get_principal import GetPrincipalHandler
from ggprov_core.devices.handlers.get_thing import GetThingHandler
from ggprov_core.devices.handlers.provision_thing import ProvisionThingHandler
from ggprov_core.devices.handlers.save_group import SaveGroupHandler
from ggprov_core.greengrass.interfaces import GreengrassClient, IotClient
from ggprov_core.stores.interfaces import DeviceTaskStore, GroupStore


def build_association_chain(
    *,
    iot: IotClient,
    greengrass: GreengrassClient,
    tasks: DeviceTaskStore,
    groups: GroupStore,
    artifacts_uri: str,
) -> HandlerChain:
    return HandlerChain(
        steps=[
            GetThingHandler(iot),
            ExistingAssociationHandler(tasks),
            ProvisionThingHandler(iot),
            GetThingHandler(iot, require_existing=True),
            CoreConfigHandler(iot, artifacts_uri=artifacts_uri),
            GetPrincipalHandler(iot),
            CreateGroupVersionHandler(greengrass),
        ],
        terminal=SaveGroupHandler(tasks, groups),
    )


__all__ = [
    "CoreConfigHandler",
    "CreateGroupVersionHandler",
    "ExistingAssociationHandler",
    "GetPrincipalHandler",
    "GetThingHandler",
    "ProvisionThingHandler",
    "SaveGroupHandler",
    "build_association_chain",
    "build_core_config",
]
