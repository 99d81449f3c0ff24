from datetime import date

import pytest

from complihr_api.common.errors import InvalidArgument
from complihr_api.services.id_categories import (
    CATEGORIES, IdCategory, RESET_MONTHLY, RESET_NEVER, RESET_YEARLY, parse_category,
)
from complihr_api.services.id_patterns import IdPattern, PATTERN_MAX_LENGTH, validate_pattern


MARCH_15 = date(2024, 3, 15)


def test_employee_pattern_renders_org_year_and_padded_sequence():
    p = IdPattern.parse("{ORG}-EMP-{YEAR}-{SEQUENCE:5}")
    assert p.render(1, date(2024, 1, 10), org_code="ACM") == "ACM-EMP-2024-00001"


def test_sequence_is_zero_padded_but_never_truncated():
    p = IdPattern.parse("{SEQUENCE:5}")
    assert p.render(7, MARCH_15) == "00007"
    assert p.render(123456, MARCH_15) == "123456"


def test_date_tokens():
    p = IdPattern.parse("{YY}{MM}{DD}|{YEAR}{MONTH}{DAY}|{YYYYMMDD}-{SEQUENCE:3}")
    assert p.render(4, MARCH_15) == "240315|20240315|20240315-004"


def test_dept_token_uses_given_code():
    p = IdPattern.parse("{ORG}-{DEPT}-{SEQUENCE:2}")
    assert p.render(3, MARCH_15, org_code="ACM", dept_code="HR") == "ACM-HR-03"


def test_dept_token_without_code_is_unresolved():
    p = IdPattern.parse("{DEPT}-{SEQUENCE:2}")
    with pytest.raises(InvalidArgument):
        p.render(1, MARCH_15)


@pytest.mark.parametrize("raw", [
    "{ORG}-{FOO}-{SEQUENCE:3}",     # unknown token
    "{ORG-{SEQUENCE:3}",            # nested / unterminated
    "{ORG}-EMP-{SEQUENCE:3",        # unterminated at end
    "ORG}-{SEQUENCE:3}",            # stray closing brace
    "{ORG}-{YEAR}",                 # no sequence
    "{SEQUENCE}",                   # sequence without width
    "{SEQUENCE:0}",                 # zero width
    "{SEQUENCE:x}",
    "{year}-{SEQUENCE:3}",          # tokens are case sensitive
    "",
    "   ",
])
def test_malformed_patterns_are_rejected(raw):
    with pytest.raises(InvalidArgument):
        IdPattern.parse(raw)


def test_pattern_length_limit():
    ok = "X" * (PATTERN_MAX_LENGTH - len("{SEQUENCE:3}")) + "{SEQUENCE:3}"
    assert validate_pattern(ok) == ok
    with pytest.raises(InvalidArgument):
        IdPattern.parse("X" + ok)


def test_non_string_pattern_rejected():
    with pytest.raises(InvalidArgument):
        IdPattern.parse(None)
    with pytest.raises(InvalidArgument):
        IdPattern.parse(12345)


def test_literal_text_is_kept_verbatim():
    p = IdPattern.parse("HR/{SEQUENCE:4}/x")
    assert p.render(12, MARCH_15) == "HR/0012/x"


def test_reset_period_from_tokens_and_category_default():
    assert IdPattern.parse("{ORG}-{MONTH}-{SEQUENCE:3}").reset_period(RESET_YEARLY) == RESET_MONTHLY
    assert IdPattern.parse("{YYYYMMDD}{SEQUENCE:3}").reset_period(RESET_YEARLY) == RESET_MONTHLY
    assert IdPattern.parse("{ORG}-{YEAR}-{SEQUENCE:3}").reset_period(RESET_YEARLY) == RESET_YEARLY
    assert IdPattern.parse("{ORG}-{YEAR}-{SEQUENCE:3}").reset_period(RESET_NEVER) == RESET_NEVER
    # yearly without a year in the output would repeat ids across years
    assert IdPattern.parse("{ORG}-{SEQUENCE:3}").reset_period(RESET_YEARLY) == RESET_NEVER


def test_default_patterns_are_valid():
    for spec in CATEGORIES.values():
        IdPattern.parse(spec.default_pattern)


def test_preview_renders_first_n_values():
    p = IdPattern.parse("{ORG}-{DEPT}-{SEQUENCE:3}")
    assert p.preview(3, as_of=MARCH_15) == ["ACME-HR-001", "ACME-HR-002", "ACME-HR-003"]


def test_parse_category_accepts_url_and_enum_forms():
    assert parse_category("department-code") is IdCategory.DEPARTMENT_CODE
    assert parse_category("Department_Code") is IdCategory.DEPARTMENT_CODE
    assert parse_category(IdCategory.LEAVE) is IdCategory.LEAVE
    with pytest.raises(InvalidArgument):
        parse_category("timesheet")
    with pytest.raises(InvalidArgument):
        parse_category(None)
