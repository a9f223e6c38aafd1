from __future__ import annotations

from datetime import date

import pytest

from student_attendance.common.datetime_utils import month_bounds
from student_attendance.core.exceptions import ValidationError


def test_month_bounds():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2023, 12) == (date(2023, 12, 1), date(2023, 12, 31))
    assert month_bounds(9999, 12) == (date(9999, 12, 1), date(9999, 12, 31))


@pytest.mark.parametrize("year, month", [(2024, 0), (2024, 13), (0, 5), (10000, 1)])
def test_month_bounds_rejects_out_of_range(year, month):
    with pytest.raises(ValidationError):
        month_bounds(year, month)
