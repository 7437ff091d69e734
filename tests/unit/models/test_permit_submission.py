import json
from datetime import date

import pytest
from pydantic import ValidationError

from driving_permit_cri.exceptions import FormDataParseError
from driving_permit_cri.models import DrivingPermit, IssuingAuthority, PermitSubmission

FORM = {
    "drivingLicenceNumber": "DECER607085K99AE",
    "surname": "DECERQUEIRA",
    "forenames": ["KENNETH"],
    "dateOfBirth": "1965-07-08",
    "issueDate": "2018-04-19",
    "expiryDate": "2042-10-01",
    "issueNumber": "23",
    "licenceIssuer": "DVLA",
    "postcode": "BA2 5AA",
}


def test_parse_form_reads_camel_case_fields():
    submission = PermitSubmission.parse_form(json.dumps(FORM))

    assert submission.licence_number == "DECER607085K99AE"
    assert submission.forenames == ("KENNETH",)
    assert submission.date_of_birth == date(1965, 7, 8)
    assert submission.licence_issuer is IssuingAuthority.DVLA
    assert submission.addresses[0].postal_code == "BA2 5AA"


def test_parse_form_accepts_single_forename_string():
    form = dict(FORM, forenames="KENNETH")

    submission = PermitSubmission.parse_form(json.dumps(form))

    assert submission.forenames == ("KENNETH",)


def test_parse_form_ignores_unknown_fields():
    form = dict(FORM, consentCheckbox=True)

    submission = PermitSubmission.parse_form(json.dumps(form).encode("utf-8"))

    assert submission.surname == "DECERQUEIRA"


@pytest.mark.parametrize("field", ["surname", "drivingLicenceNumber", "postcode", "licenceIssuer"])
def test_parse_form_rejects_missing_required_field(field):
    form = {key: value for key, value in FORM.items() if key != field}

    with pytest.raises(FormDataParseError) as exc_info:
        PermitSubmission.parse_form(json.dumps(form))

    assert field in exc_info.value.reason
    assert exc_info.value.code == 1000


def test_parse_form_rejects_blank_surname():
    with pytest.raises(FormDataParseError):
        PermitSubmission.parse_form(json.dumps(dict(FORM, surname="   ")))


def test_parse_form_rejects_malformed_body():
    with pytest.raises(FormDataParseError):
        PermitSubmission.parse_form("{not json")


def test_parse_form_rejects_unknown_issuer():
    with pytest.raises(FormDataParseError):
        PermitSubmission.parse_form(json.dumps(dict(FORM, licenceIssuer="NOBODY")))


def test_submission_is_immutable():
    submission = PermitSubmission.parse_form(json.dumps(FORM))

    with pytest.raises(ValidationError):
        submission.surname = "CHANGED"


def test_driving_permit_claim_from_submission():
    submission = PermitSubmission.parse_form(json.dumps(FORM))

    claim = DrivingPermit.from_submission(submission).to_claim()

    assert claim == {
        "documentNumber": "DECER607085K99AE",
        "expiryDate": "2042-10-01",
        "issuedBy": "DVLA",
    }
