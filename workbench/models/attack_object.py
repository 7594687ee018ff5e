"""Versioned STIX object model.

One row per stored version.  The envelope columns are denormalised from the
STIX payload on every write so the latest-version reduction and its filters
run in SQL; the payload itself is kept verbatim in the ``stix`` column.
"""

from sqlalchemy import Boolean, Column, Index, Integer, JSON, String, Text, UniqueConstraint
from ..database import Base


class AttackObject(Base):
    """Versioned STIX objects table."""

    __tablename__ = "attack_objects"
    __table_args__ = (
        # (stix.id, stix.modified) is the natural key of a version.
        UniqueConstraint("stix_id", "modified", name="uq_attack_objects_stix_id_modified"),
        Index("ix_attack_objects_type", "type"),
    )

    # Surrogate key, never exposed
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Version identity
    stix_id = Column(String(255), nullable=False)
    modified = Column(String(30), nullable=False)  # normalised, e.g. 2021-04-01T12:00:00.000Z
    created = Column(String(30), nullable=False)
    type = Column(String(64), nullable=False)

    # Lifecycle flags (NULL and False are equivalent)
    revoked = Column(Boolean, nullable=True)
    deprecated = Column(Boolean, nullable=True)  # stix.x_mitre_deprecated
    workflow_state = Column(String(64), nullable=True)  # workspace.workflow.state

    # Searchable fields
    name = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)

    # Payloads
    stix = Column(JSON, nullable=False)
    workspace = Column(JSON, nullable=False, default=dict)

    def apply_stix(self, stix: dict) -> None:
        """Replace the STIX payload and refresh the envelope columns from it."""
        self.stix = stix
        self.stix_id = stix["id"]
        self.modified = stix["modified"]
        self.created = stix["created"]
        self.type = stix["type"]
        self.revoked = stix.get("revoked")
        self.deprecated = stix.get("x_mitre_deprecated")
        self.name = stix.get("name")
        self.description = stix.get("description")

    def apply_workspace(self, workspace: dict) -> None:
        """Replace the workspace payload and refresh the workflow state column."""
        self.workspace = workspace
        workflow = workspace.get("workflow") or {}
        self.workflow_state = workflow.get("state")
