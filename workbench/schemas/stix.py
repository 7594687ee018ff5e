"""STIX payload schemas.

Each object kind is a variant of one tagged union, selected by the STIX
``type`` property.  Only the properties that matter to storage and search are
declared; anything else in the payload is kept as-is (``extra="allow"``).
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ExternalReference(BaseModel):
    model_config = ConfigDict(extra="allow")

    source_name: str
    external_id: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None


class KillChainPhase(BaseModel):
    kill_chain_name: str
    phase_name: str


class ContentReference(BaseModel):
    """Pointer from a collection to one exact object version."""
    object_ref: str
    object_modified: str


class StixCommon(BaseModel):
    """Properties every versioned object carries."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None  # generated on create when omitted
    spec_version: str = "2.1"
    created: Optional[str] = None
    modified: Optional[str] = None
    created_by_ref: Optional[str] = None
    revoked: Optional[bool] = None
    external_references: List[ExternalReference] = []
    object_marking_refs: List[str] = []

    x_mitre_deprecated: Optional[bool] = None
    x_mitre_version: Optional[str] = None
    x_mitre_attack_spec_version: Optional[str] = None
    x_mitre_modified_by_ref: Optional[str] = None


class TechniqueStix(StixCommon):
    type: Literal["attack-pattern"]
    name: str
    description: Optional[str] = None
    kill_chain_phases: List[KillChainPhase] = []
    x_mitre_platforms: List[str] = []
    x_mitre_is_subtechnique: Optional[bool] = None
    x_mitre_detection: Optional[str] = None


class TacticStix(StixCommon):
    type: Literal["x-mitre-tactic"]
    name: str
    description: Optional[str] = None
    x_mitre_shortname: Optional[str] = None


class SoftwareStix(StixCommon):
    type: Literal["malware", "tool"]
    name: str
    description: Optional[str] = None
    is_family: Optional[bool] = None
    x_mitre_aliases: List[str] = []
    x_mitre_platforms: List[str] = []


class GroupStix(StixCommon):
    type: Literal["intrusion-set"]
    name: str
    description: Optional[str] = None
    aliases: List[str] = []


class MitigationStix(StixCommon):
    type: Literal["course-of-action"]
    name: str
    description: Optional[str] = None


class MatrixStix(StixCommon):
    type: Literal["x-mitre-matrix"]
    name: str
    description: Optional[str] = None
    tactic_refs: List[str] = []


class IdentityStix(StixCommon):
    type: Literal["identity"]
    name: str
    description: Optional[str] = None
    identity_class: Optional[str] = None


class MarkingObject(BaseModel):
    model_config = ConfigDict(extra="allow")

    statement: Optional[str] = None


class MarkingDefinitionStix(StixCommon):
    type: Literal["marking-definition"]
    name: Optional[str] = None
    definition_type: Optional[str] = None
    definition: Optional[MarkingObject] = None


class CollectionStix(StixCommon):
    type: Literal["x-mitre-collection"]
    name: str
    description: Optional[str] = None
    x_mitre_contents: List[ContentReference] = []


StixObject = Annotated[
    Union[
        TechniqueStix,
        TacticStix,
        SoftwareStix,
        GroupStix,
        MitigationStix,
        MatrixStix,
        IdentityStix,
        MarkingDefinitionStix,
        CollectionStix,
    ],
    Field(discriminator="type"),
]
