import pytest

from roster.errors import ValidationError
from roster.validation import (
    MAX_LOCK_OFFSET_MINUTES,
    MAX_SNOWFLAKE,
    is_valid_date,
    is_valid_time,
    parse_event_id,
    parse_role_ids,
    validate_event_fields,
    validate_lock_offset,
)


class TestDateAndTime:
    @pytest.mark.parametrize("date", ["01.01.2030", "29.02.2028", "31.12.2029"])
    def test_valid_dates(self, date):
        assert is_valid_date(date)

    @pytest.mark.parametrize("date", ["2030-01-01", "1.1.2030", "31.02.2030", "29.02.2029", "00.01.2030", "01.13.2030", "01.01.0001", "31.12.1969"])
    def test_invalid_dates(self, date):
        assert not is_valid_date(date)

    @pytest.mark.parametrize("time", ["00:00", "09:05", "23:59"])
    def test_valid_times(self, time):
        assert is_valid_time(time)

    @pytest.mark.parametrize("time", ["24:00", "9:05", "12:60", "12.30"])
    def test_invalid_times(self, time):
        assert not is_valid_time(time)


class TestEventFields:
    def test_missing_field_reported_first(self):
        with pytest.raises(ValidationError) as exc:
            validate_event_fields("x" * 300, "bad", "", "ZvZ")
        assert exc.value.message == "Invalid input: Event name, Date, Time and Comp name are required"

    def test_title_checked_before_date(self):
        with pytest.raises(ValidationError) as exc:
            validate_event_fields("x" * 256, "bad", "25:00", "ZvZ")
        assert exc.value.field == "title"

    def test_date_checked_before_time(self):
        with pytest.raises(ValidationError) as exc:
            validate_event_fields("Siege", "32.01.2030", "25:00", "ZvZ")
        assert exc.value.field == "date"
        assert exc.value.message == "32.01.2030 is not valid date. Date must be in DD.MM.YYYY format"

    def test_invalid_time(self):
        with pytest.raises(ValidationError) as exc:
            validate_event_fields("Siege", "01.01.2030", "25:00", "ZvZ")
        assert exc.value.message == "25:00 is not valid time. Time must be in HH:MM format"

    def test_valid_fields(self):
        validate_event_fields("x" * 255, "01.01.2030", "20:00", "ZvZ")


class TestLockOffset:
    @pytest.mark.parametrize("offset", [None, 0, 30, MAX_LOCK_OFFSET_MINUTES])
    def test_accepted(self, offset):
        validate_lock_offset(offset)

    @pytest.mark.parametrize("offset", [-1, True, 1.5, "30", MAX_LOCK_OFFSET_MINUTES + 1, 2_000_000_000])
    def test_rejected(self, offset):
        with pytest.raises(ValidationError):
            validate_lock_offset(offset)


class TestParsing:
    def test_event_id(self):
        assert parse_event_id(" 555000111222333444 ") == 555000111222333444

    @pytest.mark.parametrize("raw", ["abc", "-5", "12 34", str(MAX_SNOWFLAKE + 1)])
    def test_invalid_event_id(self, raw):
        with pytest.raises(ValidationError):
            parse_event_id(raw)

    def test_role_ids(self):
        assert parse_role_ids("5, 8,9 ,23,") == [5, 8, 9, 23]

    @pytest.mark.parametrize("raw", ["", " , ", "5,eight"])
    def test_invalid_role_ids(self, raw):
        with pytest.raises(ValidationError):
            parse_role_ids(raw)
