import calendar
from dataclasses import dataclass
from datetime import date

from moodlog import Color, MoodLog, ViewMonth, date_key

SUNDAY = calendar.SUNDAY  # 6


@dataclass(frozen=True)
class DayCell:
    day: int | None = None  # None は月初前の空白
    key: str | None = None
    is_today: bool = False
    color: Color | None = None

    @property
    def is_blank(self) -> bool:
        return self.day is None


@dataclass(frozen=True)
class Picker:
    visible: bool
    selected: Color | None
    colors: tuple[Color, ...] = tuple(Color)


@dataclass(frozen=True)
class MonthGrid:
    view: ViewMonth
    cells: tuple[DayCell, ...]
    weekday_labels: tuple[str, ...]
    picker: Picker

    @property
    def title(self) -> str:
        return f"{self.view.year}.{self.view.month:02d}"

    @property
    def prev(self) -> ViewMonth:
        return self.view.shift(-1)

    @property
    def next(self) -> ViewMonth:
        return self.view.shift(1)

    @property
    def leading_blanks(self) -> int:
        n = 0
        for cell in self.cells:
            if not cell.is_blank:
                break
            n += 1
        return n

    @property
    def days(self) -> list[DayCell]:
        return [c for c in self.cells if not c.is_blank]

    @property
    def weeks(self) -> list[list[DayCell]]:
        """
        テンプレート用に 7 個ずつに分ける. 最終週は末尾を空白で埋める
        """
        rows = [list(self.cells[i:i + 7]) for i in range(0, len(self.cells), 7)]
        if rows and len(rows[-1]) < 7:
            rows[-1].extend(DayCell() for _ in range(7 - len(rows[-1])))
        return rows


def weekday_labels(first_weekday: int = SUNDAY) -> tuple[str, ...]:
    return tuple(
        calendar.day_abbr[(first_weekday + i) % 7] for i in range(7)
    )


def render(view: ViewMonth, mood_log: MoodLog, today: date,
           first_weekday: int = SUNDAY) -> MonthGrid:
    """
    表示月 / MoodLog / 今日 からカレンダーの中身を作る (副作用なし)
    """
    year, month = view

    # 1 日の曜日ぶんだけ空白セルを置く
    first, last_day = calendar.monthrange(year, month)
    blanks = (first - first_weekday) % 7
    cells = [DayCell() for _ in range(blanks)]

    for d in range(1, last_day + 1):
        key = date_key(year, month, d)
        cells.append(DayCell(
            day=d,
            key=key,
            is_today=(year, month, d) == (today.year, today.month, today.day),
            color=mood_log.get(key),
        ))

    # 入力エリアは今日を含む月を表示しているときだけ
    visible = view.contains(today)
    selected = mood_log.get(date_key(today)) if visible else None

    return MonthGrid(
        view=view,
        cells=tuple(cells),
        weekday_labels=weekday_labels(first_weekday),
        picker=Picker(visible=visible, selected=selected),
    )
