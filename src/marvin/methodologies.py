"""Built-in methodologies and the document types they register.

A methodology extends the core decision/action/question types with its own
artifact types. Only the storage registrations live here; prompts and tools
for each methodology belong to the outer agent layer.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .storage.types import (CORE_DOCUMENT_TYPES, FILENAME_STYLE_DATED,
                            DocumentTypeRegistration)

DEFAULT_METHODOLOGY = "generic-agile"

COMMON_REGISTRATIONS: Tuple[DocumentTypeRegistration, ...] = (
    DocumentTypeRegistration(
        type="meeting", dir_name="meetings", id_prefix="M", filename_style=FILENAME_STYLE_DATED
    ),
    DocumentTypeRegistration(type="report", dir_name="reports", id_prefix="R"),
    DocumentTypeRegistration(type="feature", dir_name="features", id_prefix="F"),
    DocumentTypeRegistration(type="epic", dir_name="epics", id_prefix="E"),
)


@dataclass(frozen=True)
class Methodology:
    """A named set of document type registrations."""

    id: str
    name: str
    description: str
    version: str = "0.1.0"
    registrations: Tuple[DocumentTypeRegistration, ...] = field(default_factory=tuple)

    @property
    def document_types(self) -> List[str]:
        return list(CORE_DOCUMENT_TYPES) + [reg.type for reg in self.registrations]


BUILTIN_METHODOLOGIES: Dict[str, Methodology] = {
    "generic-agile": Methodology(
        id="generic-agile",
        name="Generic Agile",
        description="Standard agile governance: decisions, actions, questions, meetings, "
        "reports, features and epics.",
        registrations=COMMON_REGISTRATIONS,
    ),
    "sap-aem": Methodology(
        id="sap-aem",
        name="SAP Application Extension Methodology",
        description="3-phase methodology for building extensions on SAP BTP: Assess Use Case, "
        "Assess Technology, Define Solution.",
        registrations=COMMON_REGISTRATIONS
        + (
            DocumentTypeRegistration(type="use-case", dir_name="use-cases", id_prefix="UC"),
            DocumentTypeRegistration(
                type="tech-assessment", dir_name="tech-assessments", id_prefix="TA"
            ),
            DocumentTypeRegistration(
                type="extension-design", dir_name="extension-designs", id_prefix="XD"
            ),
        ),
    ),
}


def resolve_methodology(methodology_id: Optional[str]) -> Optional[Methodology]:
    if not methodology_id:
        return None
    return BUILTIN_METHODOLOGIES.get(methodology_id)


def registrations_for(methodology_id: Optional[str]) -> List[DocumentTypeRegistration]:
    """Registrations for a methodology; empty for unknown or unset ids."""
    methodology = resolve_methodology(methodology_id)
    return list(methodology.registrations) if methodology else []
