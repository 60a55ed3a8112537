"""Tests for session record packaging."""

import pytest
from pydantic import ValidationError

from instant_ussd.config import Settings
from instant_ussd.models import UssdRequest
from instant_ussd.reduction import InvalidSeparatorError, reduce_ussd_text
from instant_ussd.service import UssdService, package_session_record


def make_request(text: str | None = "1*2*0") -> UssdRequest:
    return UssdRequest.model_validate(
        {
            "phoneNumber": "+254700000000",
            "sessionId": "ATUid_1",
            "serviceCode": "*384#",
            "text": text,
        }
    )


class TestUssdRequest:
    def test_camel_case_fields(self):
        request = make_request()
        assert request.phone_number == "+254700000000"
        assert request.session_id == "ATUid_1"
        assert request.service_code == "*384#"

    def test_snake_case_fields(self):
        request = UssdRequest(session_id="s1", phone_number="+1", text="1")
        assert request.session_id == "s1"
        assert request.phone_number == "+1"

    def test_missing_fields_are_none(self):
        request = UssdRequest.model_validate({})
        assert request.phone_number is None
        assert request.session_id is None
        assert request.service_code is None
        assert request.text is None

    def test_unknown_fields_allowed(self):
        request = UssdRequest.model_validate({"sessionId": "s1", "networkCode": "63902"})
        assert request.session_id == "s1"


class TestPackageSessionRecord:
    def test_record_fields(self):
        request = make_request("1*98*2*0*3")
        record = package_session_record(request, reduce_ussd_text(request.text, "*"))

        assert record.phone_number == "+254700000000"
        assert record.session_id == "ATUid_1"
        assert record.service_code == "*384#"
        assert record.text == "1*98*2*0*3"
        assert record.values_trimmed == ["1", "98", "2", "0", "3"]
        assert record.values_non_extraneous == ["1", "3"]
        assert record.values_non_extraneous_with_load_more_key == ["1", "98", "3"]
        assert record.latest_response == "3"
        assert record.first_response == "1"
        assert not record.is_first_request
        assert not record.is_go_back_request

    def test_transport_fields_passed_through_unvalidated(self):
        request = UssdRequest(text="1")
        record = package_session_record(request, reduce_ussd_text("1", "*"))

        assert record.phone_number is None
        assert record.session_id is None
        assert record.service_code is None

    def test_flags_copied(self):
        request = make_request("1*00")
        record = package_session_record(request, reduce_ussd_text(request.text, "*"))
        assert record.is_explicit_homepage_request
        assert record.values_non_extraneous == []


class TestUssdService:
    @pytest.mark.parametrize("separator", ["", None])
    def test_invalid_separator_rejected_at_construction(self, separator):
        with pytest.raises(InvalidSeparatorError):
            UssdService(separator)

    def test_process(self):
        record = UssdService("*").process(make_request("1*2*0"))
        assert record.values_trimmed == ["1", "2", "0"]
        assert record.values_non_extraneous == ["1"]
        assert record.is_go_back_request

    def test_missing_text_is_first_request(self):
        record = UssdService("*").process(make_request(None))

        assert record.text is None
        assert record.is_first_request
        assert record.values_trimmed == []
        assert record.latest_response is None

    def test_custom_separator(self):
        record = UssdService("#").process(make_request("1#98#2"))
        assert record.values_non_extraneous == ["1", "2"]


class TestSettings:
    def test_defaults(self, settings: Settings):
        assert settings.separator == "*"
        assert settings.home_menu_id == "home_instant_ussd"

    @pytest.mark.parametrize("separator", ["", "  "])
    def test_blank_separator_rejected(self, separator: str):
        with pytest.raises(ValidationError):
            Settings(separator=separator)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("USSD_SEPARATOR", "#")
        monkeypatch.setenv("USSD_MAX_MENU_HOPS", "5")
        settings = Settings()
        assert settings.separator == "#"
        assert settings.max_menu_hops == 5
