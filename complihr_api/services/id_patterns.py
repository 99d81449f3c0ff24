# complihr_api/services/id_patterns.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple, Union

from complihr_api.common.errors import InvalidArgument
from complihr_api.services.id_categories import RESET_MONTHLY, RESET_NEVER, RESET_YEARLY

"""
ID pattern templates.

A pattern is literal text mixed with placeholders:

  {ORG}         organization code
  {DEPT}        department code (supplied by the caller)
  {YEAR} {YY}   4 / 2 digit year
  {MONTH} {MM}  2 digit month
  {DAY} {DD}    2 digit day
  {YYYYMMDD}    full date
  {SEQUENCE:N}  running counter, zero padded to width N (never truncated)

Examples (org ACM, 15 Mar 2024, counter 1):
  "{ORG}-EMP-{YEAR}-{SEQUENCE:5}"       -> ACM-EMP-2024-00001
  "{ORG}-PAY-{YEAR}{MONTH}-{SEQUENCE:4}" -> ACM-PAY-202403-0001
  "LV{YYYYMMDD}{SEQUENCE:3}"             -> LV20240315001
"""

PATTERN_MAX_LENGTH = 100
SEQUENCE_MAX_WIDTH = 18

SIMPLE_TOKENS = ("ORG", "DEPT", "YEAR", "YY", "MONTH", "MM", "DAY", "DD", "YYYYMMDD")
MONTHLY_TOKENS = frozenset({"MONTH", "MM", "DAY", "DD", "YYYYMMDD"})
YEAR_TOKENS = frozenset({"YEAR", "YY", "YYYYMMDD"})

_SEQ_RE = re.compile(r"^SEQUENCE:(\d+)$")


@dataclass(frozen=True)
class Placeholder:
    name: str
    width: Optional[int] = None  # only for SEQUENCE


Part = Union[str, Placeholder]


def _valid_tokens_msg() -> str:
    return ", ".join("{%s}" % t for t in SIMPLE_TOKENS) + ", {SEQUENCE:N}"


def _parse_token(body: str, raw: str) -> Placeholder:
    if body in SIMPLE_TOKENS:
        return Placeholder(body)
    m = _SEQ_RE.match(body)
    if m:
        width = int(m.group(1))
        if width < 1 or width > SEQUENCE_MAX_WIDTH:
            raise InvalidArgument(
                f"Invalid sequence width in {{{body}}}: must be between 1 and {SEQUENCE_MAX_WIDTH}",
                payload={"pattern": raw},
            )
        return Placeholder("SEQUENCE", width)
    raise InvalidArgument(
        f"Invalid token: {{{body}}}. Valid tokens are: {_valid_tokens_msg()}",
        payload={"pattern": raw},
    )


def _split(raw: str) -> Tuple[Part, ...]:
    parts: List[Part] = []
    buf = []
    i, n = 0, len(raw)
    while i < n:
        ch = raw[i]
        if ch == "}":
            raise InvalidArgument(f"Unbalanced '}}' at position {i}", payload={"pattern": raw})
        if ch != "{":
            buf.append(ch)
            i += 1
            continue
        end = raw.find("}", i + 1)
        nested = raw.find("{", i + 1)
        if end < 0 or (0 <= nested < end):
            raise InvalidArgument(f"Unterminated placeholder at position {i}", payload={"pattern": raw})
        if buf:
            parts.append("".join(buf))
            buf = []
        parts.append(_parse_token(raw[i + 1:end], raw))
        i = end + 1
    if buf:
        parts.append("".join(buf))
    return tuple(parts)


class IdPattern:
    """A parsed, validated pattern. Build with IdPattern.parse()."""

    def __init__(self, raw: str, parts: Tuple[Part, ...]):
        self.raw = raw
        self.parts = parts

    def __repr__(self):
        return f"IdPattern({self.raw!r})"

    @classmethod
    def parse(cls, raw) -> "IdPattern":
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidArgument("Pattern must be a non-empty string")
        if len(raw) > PATTERN_MAX_LENGTH:
            raise InvalidArgument(
                f"Pattern is longer than {PATTERN_MAX_LENGTH} characters",
                payload={"pattern": raw},
            )
        parts = _split(raw)
        if not any(isinstance(p, Placeholder) and p.name == "SEQUENCE" for p in parts):
            raise InvalidArgument(
                "Pattern must include {SEQUENCE:N} where N is the padding length",
                payload={"pattern": raw},
            )
        return cls(raw, parts)

    @property
    def tokens(self) -> frozenset:
        return frozenset(p.name for p in self.parts if isinstance(p, Placeholder))

    @property
    def is_monthly(self) -> bool:
        return bool(self.tokens & MONTHLY_TOKENS)

    @property
    def has_year(self) -> bool:
        return bool(self.tokens & YEAR_TOKENS)

    def reset_period(self, category_default: str) -> str:
        """
        Monthly when any month/day token is present; otherwise the category
        default, except that a yearly reset needs a year token in the output
        (without one, ids from different years would collide).
        """
        if self.is_monthly:
            return RESET_MONTHLY
        if category_default == RESET_YEARLY and not self.has_year:
            return RESET_NEVER
        return category_default

    def render(self, sequence: int, as_of: date, org_code: Optional[str] = None,
               dept_code: Optional[str] = None) -> str:
        values = {
            "ORG": org_code,
            "DEPT": dept_code,
            "YEAR": f"{as_of.year:04d}",
            "YY": f"{as_of.year % 100:02d}",
            "MONTH": f"{as_of.month:02d}",
            "MM": f"{as_of.month:02d}",
            "DAY": f"{as_of.day:02d}",
            "DD": f"{as_of.day:02d}",
            "YYYYMMDD": f"{as_of.year:04d}{as_of.month:02d}{as_of.day:02d}",
        }
        out = []
        for part in self.parts:
            if isinstance(part, str):
                out.append(part)
            elif part.name == "SEQUENCE":
                out.append(str(sequence).zfill(part.width))
            else:
                val = values.get(part.name)
                if not val:
                    raise InvalidArgument(
                        f"Unresolved placeholder {{{part.name}}}: no value available",
                        payload={"pattern": self.raw},
                    )
                out.append(val)
        return "".join(out)

    def preview(self, count: int = 5, as_of: Optional[date] = None,
                org_code: str = "ACME", dept_code: str = "HR") -> List[str]:
        as_of = as_of or date.today()
        return [self.render(i, as_of, org_code=org_code, dept_code=dept_code) for i in range(1, count + 1)]


def validate_pattern(raw) -> str:
    """Return the pattern unchanged if valid; raise InvalidArgument otherwise."""
    return IdPattern.parse(raw).raw
