import unittest
from datetime import date
from unittest import mock

from sqlalchemy.exc import SQLAlchemyError

from app import create_app
from moodlog import AppState, Color, ViewMonth
from store import (
    StorageSlot, StoreWriteError, db, load_mood_log, load_state, record_today,
)


def fixed(d: date):
    return lambda: d


class StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
        })
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

    def tearDown(self) -> None:
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def put_raw(self, text: str) -> None:
        db.session.add(StorageSlot(name="color-log-data", value=text))
        db.session.commit()


class LoadTests(StoreTestCase):
    def test_missing_slot_is_empty(self) -> None:
        self.assertEqual(load_mood_log(), {})

    def test_truncated_payload_is_empty(self) -> None:
        self.put_raw('{"2024-01-05": "gre')
        with self.assertLogs(self.app.logger, level="WARNING"):
            self.assertEqual(load_mood_log(), {})

    def test_non_object_payload_is_empty(self) -> None:
        self.put_raw('["green"]')
        with self.assertLogs(self.app.logger, level="WARNING"):
            self.assertEqual(load_mood_log(), {})

    def test_one_bad_entry_discards_everything(self) -> None:
        self.put_raw('{"2024-01-05": "green", "2024-01-06": "pink"}')
        with self.assertLogs(self.app.logger, level="WARNING"):
            self.assertEqual(load_mood_log(), {})

    def test_load_state_starts_on_current_month(self) -> None:
        self.put_raw('{"2024-01-05": "green"}')
        state = load_state(fixed(date(2024, 3, 9)))
        self.assertEqual(state.view, ViewMonth(2024, 3))
        self.assertEqual(state.mood_log, {"2024-01-05": Color.GREEN})


class RecordTests(StoreTestCase):
    def test_write_then_read(self) -> None:
        clock = fixed(date(2024, 1, 5))
        for color in Color:
            with self.subTest(color=color):
                record_today(AppState(), color, clock)
                self.assertEqual(load_mood_log()["2024-01-05"], color)

    def test_overwrites_today(self) -> None:
        clock = fixed(date(2024, 1, 5))
        state = load_state(clock)
        state = record_today(state, Color.BLUE, clock)
        state = record_today(state, "yellow", clock)
        self.assertEqual(state.mood_log, {"2024-01-05": Color.YELLOW})
        self.assertEqual(load_mood_log(), {"2024-01-05": Color.YELLOW})
        self.assertEqual(StorageSlot.query.count(), 1)

    def test_existing_green_becomes_red(self) -> None:
        self.put_raw('{"2024-01-05": "green"}')
        clock = fixed(date(2024, 1, 5))
        state = record_today(load_state(clock), "red", clock)
        self.assertEqual(state.mood_log, {"2024-01-05": Color.RED})
        self.assertEqual(load_mood_log(), {"2024-01-05": Color.RED})

    def test_past_days_are_kept(self) -> None:
        self.put_raw('{"2024-01-04": "blue"}')
        clock = fixed(date(2024, 1, 5))
        record_today(load_state(clock), Color.GREY, clock)
        self.assertEqual(load_mood_log(), {
            "2024-01-04": Color.BLUE,
            "2024-01-05": Color.GREY,
        })

    def test_always_targets_today_not_view(self) -> None:
        clock = fixed(date(2024, 1, 5))
        state = load_state(clock).navigate(-3)
        state = record_today(state, Color.RED, clock)
        self.assertEqual(list(state.mood_log), ["2024-01-05"])
        self.assertEqual(state.view, ViewMonth(2023, 10))

    def test_unknown_color_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            record_today(AppState(), "purple", fixed(date(2024, 1, 5)))
        self.assertEqual(load_mood_log(), {})

    def test_write_failure_raises_and_keeps_state(self) -> None:
        clock = fixed(date(2024, 1, 5))
        state = AppState(mood_log={"2024-01-04": Color.BLUE}, view=ViewMonth(2024, 1))
        with mock.patch.object(db.session, "commit", side_effect=SQLAlchemyError("disk full")):
            with self.assertLogs(self.app.logger, level="ERROR"):
                with self.assertRaises(StoreWriteError):
                    record_today(state, Color.RED, clock)
        self.assertEqual(state.mood_log, {"2024-01-04": Color.BLUE})
        self.assertEqual(load_mood_log(), {})


class MissingTableTests(unittest.TestCase):
    def test_load_without_table_is_empty(self) -> None:
        app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite://"})
        with app.app_context():
            with self.assertLogs(app.logger, level="WARNING"):
                self.assertEqual(load_mood_log(), {})

    def test_state_is_marked_unloaded(self) -> None:
        app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite://"})
        clock = fixed(date(2024, 1, 5))
        with app.app_context():
            with self.assertLogs(app.logger, level="WARNING"):
                state = load_state(clock)
            self.assertFalse(state.loaded)
            with self.assertLogs(app.logger, level="ERROR"):
                with self.assertRaises(StoreWriteError):
                    record_today(state, Color.RED, clock)


if __name__ == "__main__":
    unittest.main()
