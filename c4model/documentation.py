# c4model/documentation.py
"""Documentation sections attached to software systems and containers, plus images."""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .constants import IMAGE_TYPES
from .model import Container, Element, SoftwareSystem

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class SectionType(str, Enum):
    CONTEXT = "Context"
    FUNCTIONAL_OVERVIEW = "FunctionalOverview"
    QUALITY_ATTRIBUTES = "QualityAttributes"
    CONSTRAINTS = "Constraints"
    PRINCIPLES = "Principles"
    SOFTWARE_ARCHITECTURE = "SoftwareArchitecture"
    CONTAINERS = "Containers"
    COMPONENTS = "Components"
    CODE = "Code"
    DATA = "Data"
    INFRASTRUCTURE_ARCHITECTURE = "InfrastructureArchitecture"
    DEPLOYMENT = "Deployment"
    DEVELOPMENT_ENVIRONMENT = "DevelopmentEnvironment"
    OPERATION_AND_SUPPORT = "OperationAndSupport"
    DECISION_LOG = "DecisionLog"

    @property
    def order(self) -> int:
        return list(SectionType).index(self) + 1


class DocumentationFormat(str, Enum):
    MARKDOWN = "Markdown"
    ASCIIDOC = "AsciiDoc"


@dataclass
class Section:
    element: Element
    type: SectionType
    format: DocumentationFormat
    content: str

    @property
    def element_id(self) -> str:
        return self.element.id

    @property
    def order(self) -> int:
        return self.type.order


@dataclass(frozen=True)
class Image:
    """An image file embedded as base64 `content` with its MIME `type`."""

    name: str
    content: str
    type: str


def _content_of(content_or_file: Union[str, Path]) -> str:
    if isinstance(content_or_file, Path):
        return content_or_file.read_text(encoding="utf-8")
    return content_or_file


class Documentation:
    """Sections (at most one per element and type) and images of a workspace."""

    def __init__(self) -> None:
        self.sections: list[Section] = []
        self.images: list[Image] = []

    def add(
        self,
        element: Element,
        section_type: SectionType,
        fmt: DocumentationFormat,
        content: Union[str, Path],
    ) -> Section:
        """Add a section for a software system.

        `content` is either the text itself or a `Path` to read it from.
        """
        if not isinstance(element, SoftwareSystem):
            raise TypeError(f"Expected a SoftwareSystem, got {type(element).__name__}")
        if section_type is SectionType.COMPONENTS:
            raise ValueError(
                "Sections of type Components must be related to a container rather than a software system."
            )
        return self._add(element, section_type, fmt, content)

    def add_component_section(
        self, container: Container, fmt: DocumentationFormat, content: Union[str, Path]
    ) -> Section:
        """Add the Components section for `container`."""
        if not isinstance(container, Container):
            raise TypeError(f"Expected a Container, got {type(container).__name__}")
        return self._add(container, SectionType.COMPONENTS, fmt, content)

    def _add(
        self,
        element: Element,
        section_type: SectionType,
        fmt: DocumentationFormat,
        content: Union[str, Path],
    ) -> Section:
        if self.get_section(element, section_type) is not None:
            raise ValueError(
                f"A section of type {section_type.value} for {element.name} already exists."
            )
        section = Section(element, section_type, fmt, _content_of(content))
        self.sections.append(section)
        return section

    def get_section(self, element: Element, section_type: SectionType) -> Optional[Section]:
        for section in self.sections:
            if section.element is element and section.type is section_type:
                return section
        return None

    def add_image(self, path: Optional[PathLike]) -> Image:
        if path is None:
            raise ValueError("File must not be null.")
        path = Path(path)
        if not path.exists():
            raise ValueError(f"{path} does not exist.")
        if not path.is_file():
            raise ValueError(f"{path} is not a file.")

        mime = IMAGE_TYPES.get(path.suffix.lower())
        if mime is None:
            raise ValueError(f"{path} is not a supported image file.")

        image = Image(
            name=path.name,
            content=base64.b64encode(path.read_bytes()).decode("ascii"),
            type=mime,
        )
        self.images.append(image)
        return image

    def add_images(self, directory: Optional[PathLike]) -> list[Image]:
        """Add every supported image under `directory`, recursively."""
        if directory is None:
            raise ValueError("File must not be null.")
        directory = Path(directory)
        if not directory.is_dir():
            raise ValueError(f"{directory} is not a directory.")

        added: list[Image] = []
        for path in sorted(directory.rglob("*")):
            if path.is_file() and path.suffix.lower() in IMAGE_TYPES:
                added.append(self.add_image(path))
        logger.debug("added %d image(s) from %s", len(added), directory)
        return added
