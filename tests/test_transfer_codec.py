import json

import pytest

from core.errors import FormatError
from services import transfer_codec
from services.normalizer import normalize_batch


class TestEncodeDecode:
    def test_round_trip_preserves_records_and_order(self, sample_members):
        decoded = transfer_codec.decode(transfer_codec.encode(sample_members))
        assert decoded == [m.to_dict() for m in sample_members]
        members, rejected = normalize_batch(decoded)
        assert members == sample_members
        assert rejected == 0

    def test_encode_is_pretty_and_stable(self, sample_members):
        text = transfer_codec.encode(sample_members)
        assert text.startswith("[\n  {")
        assert text == transfer_codec.encode(sample_members)
        assert "Nguyễn Văn A" in text

    def test_encode_empty(self):
        assert transfer_codec.decode(transfer_codec.encode([])) == []

    def test_decode_object_is_format_error(self):
        with pytest.raises(FormatError, match="array"):
            transfer_codec.decode("{}")

    def test_decode_invalid_json(self):
        with pytest.raises(FormatError):
            transfer_codec.decode("[1, 2")

    def test_decode_bytes_with_bom(self):
        assert transfer_codec.decode("\ufeff[]".encode("utf-8")) == []

    def test_decode_does_not_validate_records(self):
        assert transfer_codec.decode('[{"fullName": ""}, 5]') == [{"fullName": ""}, 5]

    def test_decode_records_filters(self):
        members, rejected = transfer_codec.decode_records(json.dumps([
            {"fullName": "", "partyCardNumber": "123"},
            {"fullName": "Y", "partyCardNumber": "456", "trainingCourses": "Lớp A"},
        ]))
        assert rejected == 1
        assert members[0].to_dict()["trainingCourses"] == [{"name": "Lớp A", "date": ""}]


class TestFiles:
    def test_write_then_read(self, tmp_path, sample_members):
        path = transfer_codec.write_json_file(tmp_path / "out" / "roster.json", sample_members)
        assert transfer_codec.read_json_file(path) == [m.to_dict() for m in sample_members]

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FormatError):
            transfer_codec.read_json_file(tmp_path / "missing.json")


class TestSingleProfile:
    def test_encode_member(self, sample_members):
        data = json.loads(transfer_codec.encode_member(sample_members[0]))
        assert data["fullName"] == "Nguyễn Văn A"

    def test_decode_member_coerces_courses(self):
        data = transfer_codec.decode_member('{"fullName": "A", "trainingCourses": "Lớp A"}')
        assert data["trainingCourses"] == [{"name": "Lớp A", "date": ""}]

    def test_decode_member_non_list_courses(self):
        assert transfer_codec.decode_member('{"trainingCourses": 3}')["trainingCourses"] == []

    def test_decode_member_rejects_array(self):
        with pytest.raises(FormatError):
            transfer_codec.decode_member("[]")

    def test_profile_filename(self, sample_members):
        assert transfer_codec.profile_filename(sample_members[0]) == "Nguyễn_Văn_A.json"
        assert transfer_codec.profile_filename({"fullName": ""}) == "ho_so_dang_vien.json"
