import datetime
import json

import pytest

from conftest import make_member
from core.errors import PersistenceError, ValidationError
from models.member import TrainingCourse
from services.roster_store import RosterStore


# ═══════════════════════════════════════════════════════════════════════════
# ADD
# ═══════════════════════════════════════════════════════════════════════════
class TestAdd:
    def test_add_appends(self):
        store = RosterStore()
        store.add(make_member("a"))
        store.add(make_member("b", "B", "2"))
        assert store.ids() == ["a", "b"]

    def test_add_rejects_empty_name(self):
        store = RosterStore()
        with pytest.raises(ValidationError):
            store.add(make_member(name=""))
        assert len(store) == 0

    def test_add_rejects_empty_card_dict(self):
        store = RosterStore()
        with pytest.raises(ValidationError):
            store.add({"fullName": "X", "partyCardNumber": ""})

    def test_add_dict_is_normalized(self):
        store = RosterStore()
        m = store.add({"fullName": "X", "partyCardNumber": "1", "trainingCourses": "Lớp A"})
        assert m.trainingCourses == [TrainingCourse("Lớp A", "")]

    def test_duplicate_id_gets_new_id(self):
        store = RosterStore()
        store.add(make_member("same"))
        second = store.add(make_member("same", "B", "2"))
        assert second.id != "same"
        assert len(set(store.ids())) == 2

    def test_stored_copy_is_isolated(self):
        store = RosterStore()
        m = make_member("a")
        store.add(m)
        m.fullName = "changed outside"
        assert store.get("a").fullName == "Nguyễn Văn A"


class TestAddMany:
    def test_invalid_elements_dropped(self):
        store = RosterStore()
        added = store.add_many([
            {"fullName": "", "partyCardNumber": "123"},
            {"fullName": "X", "partyCardNumber": ""},
            {"fullName": "Y", "partyCardNumber": "456"},
        ])
        assert len(added) == 1
        assert [(m.fullName, m.partyCardNumber) for m in store.all()] == [("Y", "456")]

    def test_ids_unique_within_batch_and_store(self):
        store = RosterStore()
        store.add(make_member("x"))
        store.add_many([make_member("x", "B", "2"), make_member("x", "C", "3"), make_member("", "D", "4")])
        ids = store.ids()
        assert len(ids) == 4
        assert len(set(ids)) == 4

    def test_empty_batch_does_not_notify(self):
        store = RosterStore()
        calls = []
        store.subscribe(calls.append)
        store.add_many([{"fullName": "", "partyCardNumber": ""}])
        assert calls == []


# ═══════════════════════════════════════════════════════════════════════════
# UPDATE / REMOVE
# ═══════════════════════════════════════════════════════════════════════════
class TestUpdate:
    def test_update_merges_fields(self):
        store = RosterStore([make_member("a")])
        assert store.update("a", {"position": "Bí thư"}) is True
        m = store.get("a")
        assert m.position == "Bí thư"
        assert m.fullName == "Nguyễn Văn A"

    def test_update_keeps_id(self):
        store = RosterStore([make_member("a")])
        store.update("a", make_member("other", "Z", "9"))
        assert store.ids() == ["a"]
        assert store.get("a").fullName == "Z"

    def test_update_missing_id_is_noop(self):
        store = RosterStore([make_member("a")])
        calls = []
        store.subscribe(calls.append)
        assert store.update("nope", {"fullName": "Z"}) is False
        assert calls == []

    def test_update_cannot_clear_required(self):
        store = RosterStore([make_member("a")])
        with pytest.raises(ValidationError):
            store.update("a", {"fullName": ""})
        assert store.get("a").fullName == "Nguyễn Văn A"

    def test_update_coerces_course_string(self):
        store = RosterStore([make_member("a")])
        store.update("a", {"trainingCourses": "Lớp B"})
        assert store.get("a").trainingCourses == [TrainingCourse("Lớp B", "")]

    def test_update_normalizes_gender(self):
        store = RosterStore([make_member("a")])
        store.update("a", {"gender": "xyz"})
        assert store.get("a").gender == "Khác"

    def test_update_normalizes_dates(self):
        store = RosterStore([make_member("a")])
        store.update("a", {"dateOfBirth": "07/03/1980", "officialDate": datetime.date(2005, 5, 19)})
        m = store.get("a")
        assert (m.dateOfBirth, m.officialDate) == ("1980-03-07", "2005-05-19")

    def test_update_snapshot_is_serializable(self):
        store = RosterStore([make_member("a")])
        snapshots = []
        store.subscribe(snapshots.append)
        store.update("a", {"admissionDate": datetime.date(2001, 1, 2)})
        assert json.loads(json.dumps(snapshots[-1]))[0]["admissionDate"] == "2001-01-02"

    def test_add_member_object_is_normalized(self):
        store = RosterStore()
        m = store.add(make_member("a", gender="M", dateOfBirth="07/03/1980"))
        assert (m.gender, m.dateOfBirth) == ("Khác", "1980-03-07")


class TestRemove:
    def test_remove(self):
        store = RosterStore([make_member("a"), make_member("b", "B", "2")])
        assert store.remove("a") is True
        assert store.ids() == ["b"]

    def test_remove_missing_is_noop(self):
        store = RosterStore([make_member("a")])
        assert store.remove("zzz") is False
        assert len(store) == 1


# ═══════════════════════════════════════════════════════════════════════════
# LISTENERS
# ═══════════════════════════════════════════════════════════════════════════
class TestListeners:
    def test_every_mutation_notifies_with_snapshot(self):
        store = RosterStore()
        snapshots = []
        store.subscribe(snapshots.append)

        store.add(make_member("a"))
        store.add_many([make_member("b", "B", "2")])
        store.update("a", {"position": "x"})
        store.remove("b")
        store.replace_all([make_member("c", "C", "3")])

        assert len(snapshots) == 5
        assert [r["id"] for r in snapshots[-1]] == ["c"]

    def test_listener_failure_does_not_roll_back(self):
        store = RosterStore()

        def failing(_):
            raise PersistenceError("disk full")

        store.subscribe(failing)
        with pytest.raises(PersistenceError):
            store.add(make_member("a"))
        assert store.ids() == ["a"]

    def test_replace_all_installs_verbatim(self):
        store = RosterStore([make_member("a")])
        replacement = [make_member("x", "X", "9"), make_member("y", "Y", "8")]
        store.replace_all(replacement)
        assert store.all() == replacement

    def test_hydrate_does_not_notify(self):
        store = RosterStore()
        calls = []
        store.subscribe(calls.append)
        store.hydrate([make_member("a")])
        assert store.ids() == ["a"]
        assert calls == []
