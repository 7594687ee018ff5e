"""Tests for bounded fan-out and content reference resolution."""

import threading
import time

import pytest

from workbench.core.object_types import TACTICS, TECHNIQUES
from workbench.database import SessionLocal
from workbench.exceptions import BadlyFormattedParameterError, MissingParameterError
from workbench.schemas import AttackObjectCreate
from workbench.schemas.stix import ContentReference
from workbench.services import AttackObjectService, ContentResolver
from workbench.services.content_resolver import content_key
from workbench.services.fanout import map_bounded
from tests.factories import TACTIC_ID, TECHNIQUE_ID, content_ref, make_tactic, make_technique, timestamp


class TestMapBounded:

    def test_empty_input(self):
        assert map_bounded(lambda x: x, []) == []

    def test_preserves_input_order(self):
        def slow_for_small(value):
            time.sleep(0.01 * (5 - value))
            return value * 10

        assert map_bounded(slow_for_small, range(5), max_workers=5) == [0, 10, 20, 30, 40]

    def test_concurrency_is_bounded(self):
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}

        def work(_):
            with lock:
                state["running"] += 1
                state["peak"] = max(state["peak"], state["running"])
            time.sleep(0.02)
            with lock:
                state["running"] -= 1

        map_bounded(work, range(12), max_workers=3)
        assert 1 <= state["peak"] <= 3

    def test_first_error_propagates(self):
        def work(value):
            if value == 2:
                raise ValueError("boom")
            return value

        with pytest.raises(ValueError, match="boom"):
            map_bounded(work, range(5), max_workers=2)

    def test_error_cancels_pending_work(self):
        started = []

        def work(value):
            started.append(value)
            if value == 0:
                raise RuntimeError("first")
            time.sleep(0.05)
            return value

        with pytest.raises(RuntimeError):
            map_bounded(work, range(50), max_workers=1)
        assert len(started) < 50


class TestContentKey:

    def test_mapping_reference(self):
        key = content_key({"object_ref": TACTIC_ID, "object_modified": "2021-04-01T12:00:00Z"})
        assert key == (TACTIC_ID, "2021-04-01T12:00:00.000Z")

    def test_model_reference(self):
        ref = ContentReference(object_ref=TACTIC_ID, object_modified=timestamp(0))
        assert content_key(ref) == (TACTIC_ID, timestamp(0))

    def test_missing_modified(self):
        with pytest.raises(MissingParameterError):
            content_key({"object_ref": TACTIC_ID})

    def test_reference_that_is_not_an_object(self):
        with pytest.raises(BadlyFormattedParameterError) as exc_info:
            content_key("bogus")
        assert exc_info.value.parameter_name == "x_mitre_contents"

    def test_malformed_ref(self):
        with pytest.raises(BadlyFormattedParameterError):
            content_key({"object_ref": "tactic-1", "object_modified": timestamp(0)})


class TestContentResolver:

    def _seed(self, db):
        tactic = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID)
        technique = make_technique(modified=timestamp(0), stix_id=TECHNIQUE_ID)
        AttackObjectService(db, TACTICS).create(AttackObjectCreate.model_validate(tactic))
        AttackObjectService(db, TECHNIQUES).create(AttackObjectCreate.model_validate(technique))
        return tactic, technique

    def test_resolves_in_reference_order(self, db):
        tactic, technique = self._seed(db)
        resolver = ContentResolver(SessionLocal, max_workers=2)
        resolved = resolver.resolve([content_ref(technique), content_ref(tactic)])
        assert [obj.stix["id"] for obj in resolved] == [TECHNIQUE_ID, TACTIC_ID]

    def test_drops_unresolvable_references(self, db):
        tactic, technique = self._seed(db)
        dangling = {"object_ref": TACTIC_ID, "object_modified": timestamp(600)}
        resolver = ContentResolver(SessionLocal)
        resolved = resolver.resolve([dangling, content_ref(technique), content_ref(tactic)])
        assert [obj.stix["id"] for obj in resolved] == [TECHNIQUE_ID, TACTIC_ID]

    def test_exact_version_only(self, db):
        tactic, _ = self._seed(db)
        AttackObjectService(db, TACTICS).create(
            AttackObjectCreate.model_validate(make_tactic(modified=timestamp(60), stix_id=TACTIC_ID))
        )
        resolved = ContentResolver(SessionLocal).resolve([content_ref(tactic)])
        assert [obj.stix["modified"] for obj in resolved] == [timestamp(0)]

    def test_malformed_reference_fails_batch(self, db):
        tactic, _ = self._seed(db)
        resolver = ContentResolver(SessionLocal)
        with pytest.raises(BadlyFormattedParameterError):
            resolver.resolve([content_ref(tactic), {"object_ref": "bad", "object_modified": timestamp(0)}])

    def test_no_references(self):
        assert ContentResolver(SessionLocal).resolve([]) == []
