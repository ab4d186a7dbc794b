from ggprov_core.templates.store import (
    get_template,
    load_templates,
    save_template,
    save_templates,
    template_registry_uri,
)
from ggprov_core.templates.types import TemplateItem

__all__ = [
    "TemplateItem",
    "get_template",
    "load_templates",
    "save_template",
    "save_templates",
    "template_registry_uri",
]
