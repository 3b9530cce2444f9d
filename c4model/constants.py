# c4model/constants.py
from __future__ import annotations

# Required tags, applied automatically and never removable.
TAG_ELEMENT = "Element"
TAG_PERSON = "Person"
TAG_SOFTWARE_SYSTEM = "Software System"
TAG_CONTAINER = "Container"
TAG_COMPONENT = "Component"
TAG_RELATIONSHIP = "Relationship"
TAG_SYNCHRONOUS = "Synchronous"
TAG_ASYNCHRONOUS = "Asynchronous"

CANONICAL_NAME_SEPARATOR = "/"

# Split-definition filenames (loaded in deterministic order).
DEFINITION_PART_FILES: tuple[str, ...] = (
    "00_workspace.yaml",
    "10_model.yaml",
    "20_views.yaml",
    # Additional views are discovered under views/*.yaml
    "30_documentation.yaml",  # optional
)

# Element sections of a definition, in build order.
DEFINITION_ELEMENT_SECTIONS: tuple[str, ...] = ("people", "software_systems")

# Definition view sections -> view kind names.
DEFINITION_VIEW_SECTIONS: tuple[str, ...] = (
    "system_context",
    "enterprise_context",
    "container",
    "component",
    "dynamic",
)

DEFAULT_API_URL = "https://api.structurizr.com"
WORKSPACE_PATH = "/workspace/"
USER_AGENT = "c4model-python/0.1"

# Recognised image extensions -> MIME types.
IMAGE_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}
