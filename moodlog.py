import json
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Callable, NamedTuple

from zoneinfo import ZoneInfo

JST = ZoneInfo("Asia/Tokyo")

# 今日の日付を返すもの. テストでは固定日付を差し込む
Clock = Callable[[], date]


def zone_clock(tz: ZoneInfo = JST) -> Clock:
    """
    指定タイムゾーンでの「今日」を返す clock を作る
    """
    def today() -> date:
        return datetime.now(tz).date()
    return today


class Color(str, Enum):
    """気分の色. 並び順がそのままパレットの順になる"""
    GREY = "grey"      # neutral
    BLUE = "blue"      # calm
    GREEN = "green"    # growth
    YELLOW = "yellow"  # caution
    RED = "red"        # alert

    @property
    def hex(self) -> str:
        return COLOR_HEX[self]


COLOR_HEX = {
    Color.GREY: "#9e9e9e",
    Color.BLUE: "#4a90d9",
    Color.GREEN: "#5cb85c",
    Color.YELLOW: "#f0c419",
    Color.RED: "#d9534f",
}

# DateKey -> Color
MoodLog = dict[str, Color]

_DATE_KEY_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def date_key(d: date | int, month: int | None = None, day: int | None = None) -> str:
    """
    'YYYY-MM-DD' を作る. date でも (year, month, day) でも同じキーになる
    """
    if isinstance(d, date):
        d, month, day = d.year, d.month, d.day
    return f"{d:04d}-{month:02d}-{day:02d}"


def is_date_key(value) -> bool:
    if not isinstance(value, str) or not _DATE_KEY_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


class MoodLogFormatError(ValueError):
    pass


def parse_mood_log(text: str) -> MoodLog:
    """
    保存されている JSON 文字列を MoodLog に戻す
    一つでもおかしいエントリがあれば全体を捨てる (MoodLogFormatError)
    """
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MoodLogFormatError(f"not JSON: {e}") from e

    if not isinstance(raw, dict):
        raise MoodLogFormatError(f"expected object, got {type(raw).__name__}")

    log: MoodLog = {}
    for key, value in raw.items():
        if not is_date_key(key):
            raise MoodLogFormatError(f"bad date key: {key!r}")
        try:
            log[key] = Color(value)
        except ValueError as e:
            raise MoodLogFormatError(f"bad color for {key}: {value!r}") from e
    return log


def dump_mood_log(log: MoodLog) -> str:
    return json.dumps(
        {k: Color(v).value for k, v in sorted(log.items())},
        ensure_ascii=False,
    )


class ViewMonth(NamedTuple):
    """表示中の年月. month は 1 始まり"""
    year: int
    month: int

    @classmethod
    def of(cls, d: date) -> "ViewMonth":
        return cls(d.year, d.month)

    def shift(self, step: int) -> "ViewMonth":
        # 1 月の前は前年 12 月, 12 月の次は翌年 1 月
        index = self.year * 12 + (self.month - 1) + step
        return ViewMonth(index // 12, index % 12 + 1)

    def contains(self, d: date) -> bool:
        return (self.year, self.month) == (d.year, d.month)


@dataclass(frozen=True)
class AppState:
    mood_log: MoodLog = field(default_factory=dict)
    view: ViewMonth | None = None
    # False なら DB から読めていない. 空の mood_log は「記録なし」とは限らない
    loaded: bool = True

    def navigate(self, step: int) -> "AppState":
        return replace(self, view=self.view.shift(step))

    def show(self, view: ViewMonth) -> "AppState":
        return replace(self, view=view)
