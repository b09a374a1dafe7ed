"""Tests for translating store constraint failures into BadRequestError."""

from types import SimpleNamespace

import psycopg2
import pytest

from shelterbeds.domain.errors import BadRequestError, store_errors_as_bad_request


class _ConstraintViolation(psycopg2.IntegrityError):
    """IntegrityError carrying a constraint name, as the server reports it."""

    def __init__(self, constraint_name):
        super().__init__("new row for relation violates check constraint")
        self._constraint_name = constraint_name

    @property
    def diag(self):
        return SimpleNamespace(constraint_name=self._constraint_name)


@pytest.mark.parametrize(
    "constraint, prefix",
    [
        ("registrations_mat_number_ck", "mat_number:"),
        ("registrations_features_ck", "features:"),
        ("registrations_payment_type_ck", "payment_type:"),
        ("registrations_payment_amount_ck", "payment_amount:"),
        ("registrations_guest_per_day_uq", "guest_id:"),
        ("templates_name_within_facility_uq", "name:"),
    ],
)
def test_named_constraint_maps_to_field_message(constraint, prefix):
    with pytest.raises(BadRequestError) as exc_info:
        with store_errors_as_bad_request():
            raise _ConstraintViolation(constraint)

    assert str(exc_info.value).startswith(prefix)
    assert isinstance(exc_info.value.__cause__, psycopg2.IntegrityError)


def test_unknown_constraint_falls_back_to_error_text():
    with pytest.raises(BadRequestError, match="violates check constraint"):
        with store_errors_as_bad_request():
            raise _ConstraintViolation("some_other_ck")


def test_other_errors_pass_through():
    with pytest.raises(RuntimeError):
        with store_errors_as_bad_request():
            raise RuntimeError("connection lost")
