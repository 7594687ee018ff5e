"""Tests for the latest-version reduction behind every list endpoint."""

import pytest

from workbench.core.object_types import SOFTWARE, TACTICS, TECHNIQUES
from workbench.repositories import AttackObjectRepository
from workbench.repositories.attack_object_repository import search_clause
from workbench.models import AttackObject
from workbench.schemas import AttackObjectCreate, PaginatedAttackObjects, QueryOptions
from workbench.services import AttackObjectService
from tests.factories import (
    TACTIC_ID,
    TECHNIQUE_ID,
    make_software,
    make_tactic,
    make_technique,
    new_version,
    timestamp,
)

OTHER_TACTIC_ID = "x-mitre-tactic--9d7d1c64-2f1b-4b3f-8f0e-0c7d4b2e6a55"


def _create(db, object_type, payload):
    return AttackObjectService(db, object_type).create(AttackObjectCreate.model_validate(payload))


def _names(documents):
    return [doc.stix["name"] for doc in documents]


class TestLatestReduction:

    def test_empty_store(self, db):
        assert AttackObjectService(db, TACTICS).retrieve_all(QueryOptions()) == []

    def test_one_result_per_object(self, db):
        first = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID)
        _create(db, TACTICS, first)
        _create(db, TACTICS, new_version(first, timestamp(60), name="renamed"))
        _create(db, TACTICS, new_version(first, timestamp(30), name="middle"))

        result = AttackObjectService(db, TACTICS).retrieve_all(QueryOptions())
        assert len(result) == 1
        assert result[0].modified == timestamp(60)
        assert result[0].stix["name"] == "renamed"

    def test_results_ordered_by_id(self, db):
        _create(db, TACTICS, make_tactic(name="b", stix_id=OTHER_TACTIC_ID))
        _create(db, TACTICS, make_tactic(name="a", stix_id=TACTIC_ID))
        result = AttackObjectService(db, TACTICS).retrieve_all(QueryOptions())
        assert [doc.stix_id for doc in result] == sorted([TACTIC_ID, OTHER_TACTIC_ID])

    def test_scoped_to_kind(self, db):
        _create(db, TACTICS, make_tactic())
        _create(db, TECHNIQUES, make_technique())
        _create(db, SOFTWARE, make_software())
        tool = make_software(name="tool-1")
        tool["stix"]["type"] = "tool"
        _create(db, SOFTWARE, tool)

        assert _names(AttackObjectService(db, TACTICS).retrieve_all(QueryOptions())) == ["x-mitre-tactic-1"]
        assert _names(AttackObjectService(db, TECHNIQUES).retrieve_all(QueryOptions())) == ["technique-1"]
        assert sorted(_names(AttackObjectService(db, SOFTWARE).retrieve_all(QueryOptions()))) == [
            "software-1",
            "tool-1",
        ]

    def test_unscoped_repository_spans_kinds(self, db):
        _create(db, TACTICS, make_tactic())
        _create(db, TECHNIQUES, make_technique())
        assert len(AttackObjectRepository(db).get_latest_versions(QueryOptions())) == 2


class TestLifecycleFilters:

    def test_revoked_excluded_by_default(self, db):
        _create(db, TACTICS, make_tactic(stix_id=TACTIC_ID, revoked=True))
        _create(db, TACTICS, make_tactic(stix_id=OTHER_TACTIC_ID))
        svc = AttackObjectService(db, TACTICS)

        assert [doc.stix_id for doc in svc.retrieve_all(QueryOptions())] == [OTHER_TACTIC_ID]
        assert len(svc.retrieve_all(QueryOptions(include_revoked=True))) == 2

    def test_deprecated_excluded_by_default(self, db):
        _create(db, TACTICS, make_tactic(stix_id=TACTIC_ID, x_mitre_deprecated=True))
        _create(db, TACTICS, make_tactic(stix_id=OTHER_TACTIC_ID, x_mitre_deprecated=False))
        svc = AttackObjectService(db, TACTICS)

        assert [doc.stix_id for doc in svc.retrieve_all(QueryOptions())] == [OTHER_TACTIC_ID]
        assert len(svc.retrieve_all(QueryOptions(include_deprecated=True))) == 2

    def test_revoked_latest_hides_whole_object(self, db):
        first = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID)
        _create(db, TACTICS, first)
        _create(db, TACTICS, new_version(first, timestamp(60), revoked=True))

        svc = AttackObjectService(db, TACTICS)
        assert svc.retrieve_all(QueryOptions()) == []
        # No fallback to the older, unrevoked version
        result = svc.retrieve_all(QueryOptions(include_revoked=True))
        assert [doc.modified for doc in result] == [timestamp(60)]

    def test_revoked_older_version_does_not_hide_object(self, db):
        first = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID, revoked=True)
        _create(db, TACTICS, first)
        _create(db, TACTICS, new_version(first, timestamp(60), revoked=False))
        assert len(AttackObjectService(db, TACTICS).retrieve_all(QueryOptions())) == 1

    def test_state_filter(self, db):
        _create(db, TACTICS, make_tactic(stix_id=TACTIC_ID, state="reviewed"))
        _create(db, TACTICS, make_tactic(stix_id=OTHER_TACTIC_ID, state="work-in-progress"))
        svc = AttackObjectService(db, TACTICS)

        result = svc.retrieve_all(QueryOptions(state="reviewed"))
        assert [doc.stix_id for doc in result] == [TACTIC_ID]
        assert svc.retrieve_all(QueryOptions(state="awaiting-review")) == []

    def test_state_filter_uses_latest_version(self, db):
        first = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID, state="reviewed")
        _create(db, TACTICS, first)
        second = new_version(first, timestamp(60))
        second["workspace"] = {"workflow": {"state": "work-in-progress"}}
        _create(db, TACTICS, second)

        assert AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(state="reviewed")) == []


class TestSearch:

    def _seed(self, db):
        first = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID)
        _create(db, TACTICS, first)
        _create(db, TACTICS, new_version(first, timestamp(60), description="This is a tactic. Violet."))
        _create(db, TACTICS, make_tactic(name="Credential Access", stix_id=OTHER_TACTIC_ID, description=""))

    def test_matches_description_case_insensitively(self, db):
        self._seed(db)
        result = AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(search="violet"))
        assert [doc.stix_id for doc in result] == [TACTIC_ID]

    def test_matches_name(self, db):
        self._seed(db)
        result = AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(search="credential"))
        assert [doc.stix_id for doc in result] == [OTHER_TACTIC_ID]

    def test_term_only_in_superseded_version_not_found(self, db):
        self._seed(db)
        assert AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(search="yellow")) == []

    def test_any_term_matches(self, db):
        self._seed(db)
        result = AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(search="violet credential"))
        assert len(result) == 2

    def test_blank_search_is_no_filter(self, db):
        self._seed(db)
        assert len(AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(search="   "))) == 2

    def test_wildcard_characters_match_literally(self, db):
        self._seed(db)
        _create(db, TACTICS, make_tactic(name="100% coverage_check", description=""))
        svc = AttackObjectService(db, TACTICS)
        assert _names(svc.retrieve_all(QueryOptions(search="%"))) == ["100% coverage_check"]
        assert _names(svc.retrieve_all(QueryOptions(search="_"))) == ["100% coverage_check"]
        assert svc.retrieve_all(QueryOptions(search="tactic_")) == []

    def test_search_clause_empty_for_blank_terms(self):
        assert search_clause(AttackObject, ("name",), "  ") is None


class TestPagination:

    def _seed(self, db, count=3):
        ids = [f"x-mitre-tactic--00000000-0000-4000-8000-00000000000{i}" for i in range(count)]
        for i, stix_id in enumerate(ids):
            first = make_tactic(name=f"tactic-{i}", modified=timestamp(0), stix_id=stix_id)
            _create(db, TACTICS, first)
            _create(db, TACTICS, new_version(first, timestamp(60)))
        return ids

    def test_offset_and_limit(self, db):
        ids = self._seed(db)
        svc = AttackObjectService(db, TACTICS)
        assert [doc.stix_id for doc in svc.retrieve_all(QueryOptions(limit=2))] == ids[:2]
        assert [doc.stix_id for doc in svc.retrieve_all(QueryOptions(offset=2))] == ids[2:]
        assert svc.retrieve_all(QueryOptions(offset=5)) == []

    def test_limit_zero_means_unlimited(self, db):
        self._seed(db)
        assert len(AttackObjectService(db, TACTICS).retrieve_all(QueryOptions(limit=0))) == 3

    def test_envelope_counts_objects_not_versions(self, db):
        self._seed(db, count=2)
        result = AttackObjectService(db, TACTICS).retrieve_all(
            QueryOptions(limit=1, include_pagination=True)
        )
        assert isinstance(result, PaginatedAttackObjects)
        assert result.pagination.total == 2
        assert result.pagination.offset == 0
        assert result.pagination.limit == 1
        assert len(result.data) == 1

    def test_envelope_past_the_end_still_counts(self, db):
        self._seed(db, count=2)
        result = AttackObjectService(db, TACTICS).retrieve_all(
            QueryOptions(offset=5, limit=1, include_pagination=True)
        )
        assert result.pagination.total == 2
        assert result.data == []

    def test_page_and_total_from_one_statement(self, db, monkeypatch):
        self._seed(db, count=3)
        repo = AttackObjectRepository(db, TACTICS.stix_types)
        monkeypatch.setattr(repo, "count_latest_versions", lambda options: pytest.fail("separate count"))
        documents, total = repo.get_latest_versions_page(QueryOptions(offset=1, limit=1))
        assert total == 3
        assert [doc.stix["name"] for doc in documents] == ["tactic-1"]

    def test_envelope_total_respects_filters(self, db):
        self._seed(db, count=2)
        result = AttackObjectService(db, TACTICS).retrieve_all(
            QueryOptions(search="no-such-term", include_pagination=True)
        )
        assert result.pagination.total == 0
        assert result.data == []
