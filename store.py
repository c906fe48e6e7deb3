from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from moodlog import (
    AppState, Clock, Color, MoodLog, MoodLogFormatError, ViewMonth,
    date_key, dump_mood_log, parse_mood_log,
)

DEFAULT_SLOT = "color-log-data"

db = SQLAlchemy()


class StorageSlot(db.Model):
    """名前付きのスロットに文字列を一つ持つだけの KVS"""
    __tablename__ = "storage_slot"

    name = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=False)


class StoreWriteError(RuntimeError):
    pass


def _slot_name() -> str:
    return current_app.config.get("MOODLOG_SLOT", DEFAULT_SLOT)


def _load() -> tuple[MoodLog, bool]:
    """
    (MoodLog, DB から読めたか) を返す
    中身が壊れているのは読めた扱い. DB エラーのときだけ False
    """
    name = _slot_name()
    try:
        slot = StorageSlot.query.filter_by(name=name).first()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning("mood log load failed (%s): %s", name, e)
        return {}, False

    if slot is None:
        return {}, True

    try:
        return parse_mood_log(slot.value), True
    except MoodLogFormatError as e:
        current_app.logger.warning("mood log discarded (%s): %s", name, e)
        return {}, True


def load_mood_log() -> MoodLog:
    """
    保存済みの MoodLog を読む
    無い / 壊れている場合は空の dict. ここで例外は投げない
    """
    return _load()[0]


def load_state(clock: Clock) -> AppState:
    log, loaded = _load()
    return AppState(mood_log=log, view=ViewMonth.of(clock()), loaded=loaded)


def save_mood_log(log: MoodLog) -> None:
    name = _slot_name()
    payload = dump_mood_log(log)
    try:
        slot = StorageSlot.query.filter_by(name=name).first()
        if slot is None:
            db.session.add(StorageSlot(name=name, value=payload))
        else:
            slot.value = payload
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("mood log write failed (%s)", name)
        raise StoreWriteError(str(e)) from e


def record_today(state: AppState, color: Color | str, clock: Clock) -> AppState:
    """
    今日の色を記録する. 何度でも上書きしてよい
    書き込みに失敗したら StoreWriteError で, state はそのまま
    """
    color = Color(color)
    key = date_key(clock())

    # 読めていない履歴の上に書くと, 保存済みの過去日がまるごと消える
    if not state.loaded:
        current_app.logger.error("mood log not loaded; refusing to write %s", key)
        raise StoreWriteError("mood log was not loaded")

    log = dict(state.mood_log)
    log[key] = color
    save_mood_log(log)

    current_app.logger.info("recorded %s for %s", color.value, key)
    return AppState(mood_log=log, view=state.view)
