"""BookingForm validation, lookup gating and the lookup guard."""

import re
from datetime import date

import pytest

from src.nurse_visits.catalog import MESSAGES, OTHER_SYMPTOM
from src.nurse_visits.errors import NetworkError, RequestValidationError
from src.nurse_visits.views.booking import BookingForm, LookupGuard, form_choices, resolve_period

TODAY = date(2024, 6, 15)

STUDENT = {
    "success": True,
    "student": {"grade": "4/2", "prefix": "นาย", "firstName": "สมชาย", "lastName": "ใจดี"},
}


def filled_form(**overrides) -> BookingForm:
    values = dict(
        date="2024-06-03",
        period="08:30-09:30",
        student_id="12345",
        grade="4/2",
        prefix="นาย",
        first_name="สมชาย",
        last_name="ใจดี",
        symptom_category="ปวดหัว",
        treatment="ให้ยา",
    )
    values.update(overrides)
    return BookingForm(**values)


class RecordingLookup:
    def __init__(self, body=STUDENT, error=None) -> None:
        self.body = body
        self.error = error
        self.calls: list[str] = []

    def __call__(self, student_id: str) -> dict:
        self.calls.append(student_id)
        if self.error is not None:
            raise self.error
        return self.body


class RecordingSubmit:
    def __init__(self, body=None) -> None:
        self.body = body if body is not None else {"success": True, "message": "บันทึกสำเร็จ"}
        self.calls: list[tuple] = []

    def __call__(self, fields, image_path):
        self.calls.append((fields, image_path))
        return self.body


class TestLookup:
    def test_autofills_profile(self):
        form = BookingForm(student_id="12345")
        profile = form.lookup(RecordingLookup())
        assert profile is not None
        assert (form.grade, form.prefix, form.first_name, form.last_name) == (
            "4/2",
            "นาย",
            "สมชาย",
            "ใจดี",
        )
        assert form.student_verified

    def test_same_id_is_looked_up_once(self):
        lookup = RecordingLookup(body={"success": False, "message": "ไม่พบ"})
        form = BookingForm(student_id="12345")
        form.lookup(lookup)
        form.lookup(lookup)
        assert lookup.calls == ["12345"]

    def test_failed_lookup_is_not_repeated(self):
        lookup = RecordingLookup(error=NetworkError("down"))
        form = BookingForm(student_id="12345")
        form.lookup(lookup)
        form.lookup(lookup)
        assert lookup.calls == ["12345"]
        assert form.error.startswith(MESSAGES["server_unreachable"])

    @pytest.mark.parametrize("student_id", ["", "12a45", "  "])
    def test_non_numeric_ids_are_not_looked_up(self, student_id):
        lookup = RecordingLookup()
        BookingForm(student_id=student_id).lookup(lookup)
        assert lookup.calls == []

    def test_not_found_message(self):
        form = BookingForm(student_id="99999")
        form.lookup(RecordingLookup(body={"success": False}))
        assert form.error == MESSAGES["lookup_not_found"]
        assert not form.student_verified


class TestValidate:
    def test_valid_form(self):
        filled_form().validate(TODAY)

    def test_missing_field(self):
        with pytest.raises(RequestValidationError, match=re.escape(MESSAGES["form_incomplete"])):
            filled_form(treatment="").validate(TODAY)

    def test_other_symptom_needs_text(self):
        with pytest.raises(RequestValidationError):
            filled_form(symptom_category=OTHER_SYMPTOM).validate(TODAY)
        form = filled_form(symptom_category=OTHER_SYMPTOM, custom_symptoms="เจ็บคอ")
        form.validate(TODAY)
        assert form.symptoms == "เจ็บคอ"

    def test_student_id_digits(self):
        with pytest.raises(RequestValidationError, match=re.escape(MESSAGES["student_id_digits"])):
            filled_form(student_id="12a").validate(TODAY)

    @pytest.mark.parametrize("value", ["2023-12-31", "2026-01-01", "03/06/2024"])
    def test_date_outside_range(self, value):
        with pytest.raises(RequestValidationError, match=re.escape(MESSAGES["date_out_of_range"])):
            filled_form(date=value).validate(TODAY)

    def test_next_year_is_allowed(self):
        filled_form(date="2025-12-31").validate(TODAY)

    def test_image_type(self, tmp_path):
        path = tmp_path / "x.gif"
        path.write_bytes(b"GIF89a")
        with pytest.raises(RequestValidationError, match=re.escape(MESSAGES["image_type"])):
            filled_form(image_path=path).validate(TODAY)

    def test_image_size(self, tmp_path):
        path = tmp_path / "big.jpg"
        path.write_bytes(b"\0" * (5 * 1024 * 1024 + 1))
        with pytest.raises(RequestValidationError, match=re.escape(MESSAGES["image_size"])):
            filled_form(image_path=path).validate(TODAY)


class TestSubmit:
    def test_requires_successful_lookup(self):
        submit = RecordingSubmit()
        form = filled_form()
        result = form.submit(submit, TODAY)
        assert not result.success
        assert result.message == MESSAGES["lookup_required"]
        assert submit.calls == []

    def test_success_resets_form(self):
        submit = RecordingSubmit()
        form = filled_form()
        form.lookup(RecordingLookup())

        result = form.submit(submit, TODAY)

        assert result.success
        fields, image_path = submit.calls[0]
        assert fields["studentId"] == "12345"
        assert fields["symptoms"] == "ปวดหัว"
        assert image_path is None
        assert form.student_id == ""
        assert not form.student_verified

    def test_changing_the_id_drops_verification(self):
        form = filled_form()
        form.lookup(RecordingLookup())
        form.student_id = "54321"
        result = form.submit(RecordingSubmit(), TODAY)
        assert result.message == MESSAGES["lookup_required"]

    def test_same_student_can_book_again_after_success(self):
        lookup = RecordingLookup()
        submit = RecordingSubmit()
        form = BookingForm()

        for _ in range(2):
            form.date = "2024-06-03"
            form.period = "08:30-09:30"
            form.student_id = "12345"
            form.symptom_category = "ไข้"
            form.treatment = "พักผ่อน"
            assert form.lookup(lookup) is not None
            assert form.submit(submit, TODAY).success

        assert lookup.calls == ["12345", "12345"]
        assert len(submit.calls) == 2
        assert submit.calls[1][0]["firstName"] == "สมชาย"

    def test_period_label_is_sent_as_its_value(self):
        submit = RecordingSubmit()
        form = filled_form(period="คาบ 1")
        form.lookup(RecordingLookup())

        assert form.submit(submit, TODAY).success
        assert submit.calls[0][0]["period"] == "08:30-09:30"

    def test_unknown_period_is_not_sent(self):
        submit = RecordingSubmit()
        form = filled_form(period="99:99-99:99")
        form.lookup(RecordingLookup())

        result = form.submit(submit, TODAY)

        assert not result.success
        assert result.message == MESSAGES["period_invalid"]
        assert submit.calls == []

    def test_upstream_rejection_keeps_fields(self):
        form = filled_form()
        form.lookup(RecordingLookup())
        result = form.submit(RecordingSubmit({"success": False, "message": "ซ้ำ"}), TODAY)
        assert not result.success
        assert form.error == "ซ้ำ"
        assert form.student_id == "12345"


def test_lookup_guard_claims_once():
    guard = LookupGuard()
    assert guard.claim("1")
    assert not guard.claim("1")
    guard.finish("1")
    assert not guard.claim("1")
    assert guard.seen("1")
    assert not guard.seen("2")


def test_form_choices():
    choices = form_choices()
    assert choices["periods"][0] == "07:30-08:00"
    assert "6/12" in choices["grades"]
    assert OTHER_SYMPTOM in choices["symptoms"]


def test_resolve_period():
    assert resolve_period("คาบ 0") == "07:30-08:00"
    assert resolve_period(" 15:30-16:30 ") == "15:30-16:30"
    assert resolve_period("คาบ 9") is None
    assert resolve_period("") is None
