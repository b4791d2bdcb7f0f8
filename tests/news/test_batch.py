"""Tests for batch id generation and parsing."""

from datetime import date, datetime, timedelta, timezone

import pytest

from ainews.news.batch import BATCH_TZ, generate_batch_id, parse_batch_id


class TestGenerateBatchId:
    def test_local_morning(self):
        now = datetime(2024, 3, 5, 8, 3, tzinfo=BATCH_TZ)
        assert generate_batch_id(now) == "2024-03-05-08"

    def test_converts_from_utc(self):
        # 00:03 UTC is 08:03 in UTC+8
        now = datetime(2024, 3, 5, 0, 3, tzinfo=timezone.utc)
        assert generate_batch_id(now) == "2024-03-05-08"

    def test_date_rolls_over(self):
        # 18:30 UTC on the 4th is 02:30 on the 5th in UTC+8
        now = datetime(2024, 3, 4, 18, 30, tzinfo=timezone.utc)
        assert generate_batch_id(now) == "2024-03-05-02"

    def test_naive_is_utc(self):
        assert generate_batch_id(datetime(2024, 12, 31, 16, 0)) == "2025-01-01-00"

    def test_other_offsets(self):
        now = datetime(2024, 3, 5, 10, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert generate_batch_id(now) == "2024-03-05-23"

    def test_same_hour_shares_id(self):
        a = datetime(2024, 3, 5, 18, 0, tzinfo=BATCH_TZ)
        b = datetime(2024, 3, 5, 18, 59, tzinfo=BATCH_TZ)
        assert generate_batch_id(a) == generate_batch_id(b)

    def test_default_now_format(self):
        batch_id = generate_batch_id()
        assert len(batch_id) == 13
        parse_batch_id(batch_id)


class TestParseBatchId:
    def test_morning(self):
        info = parse_batch_id("2024-03-05-08")
        assert info.day == date(2024, 3, 5)
        assert info.hour == 8
        assert info.edition == "Morning"
        assert info.date_formatted == "March 5, 2024"

    def test_noon_is_evening(self):
        assert parse_batch_id("2024-03-05-12").edition == "Evening"

    def test_evening(self):
        info = parse_batch_id("2024-12-25-18")
        assert not info.is_morning
        assert info.date_formatted == "December 25, 2024"

    @pytest.mark.parametrize("bad", ["2024-03-05", "2024-03-05-8", "2024-03-05-24", "2024/03/05-08"])
    def test_malformed(self, bad):
        with pytest.raises(ValueError):
            parse_batch_id(bad)
