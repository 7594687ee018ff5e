"""Registry of the versioned object kinds served by the store.

Each kind shares the same envelope and version contract; they differ only by
the STIX ``type`` values they accept and the route segment they are served
under.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ObjectType:
    """One servable object kind."""

    name: str            # route segment, e.g. "techniques"
    label: str           # singular, used in log messages and OpenAPI tags
    stix_types: tuple[str, ...]

    def accepts(self, stix_type: str) -> bool:
        return stix_type in self.stix_types


TECHNIQUES = ObjectType("techniques", "technique", ("attack-pattern",))
TACTICS = ObjectType("tactics", "tactic", ("x-mitre-tactic",))
SOFTWARE = ObjectType("software", "software", ("malware", "tool"))
GROUPS = ObjectType("groups", "group", ("intrusion-set",))
MITIGATIONS = ObjectType("mitigations", "mitigation", ("course-of-action",))
MATRICES = ObjectType("matrices", "matrix", ("x-mitre-matrix",))
IDENTITIES = ObjectType("identities", "identity", ("identity",))
MARKING_DEFINITIONS = ObjectType("marking-definitions", "marking definition", ("marking-definition",))
COLLECTIONS = ObjectType("collections", "collection", ("x-mitre-collection",))

OBJECT_TYPES: dict[str, ObjectType] = {
    t.name: t
    for t in (
        TECHNIQUES, TACTICS, SOFTWARE, GROUPS, MITIGATIONS,
        MATRICES, IDENTITIES, MARKING_DEFINITIONS, COLLECTIONS,
    )
}
