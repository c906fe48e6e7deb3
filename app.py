import os
from dotenv import load_dotenv

from flask import (
    Blueprint, Flask, abort, current_app, flash, redirect,
    render_template, request, url_for,
)
from flask_migrate import Migrate

from zoneinfo import ZoneInfo

from calendar_ui import render
from moodlog import AppState, Color, ViewMonth, zone_clock
from store import DEFAULT_SLOT, StoreWriteError, db, load_state, record_today

load_dotenv()

migrate = Migrate()
bp = Blueprint("calendar", __name__)

COLOR_VALUES = {c.value for c in Color}


def current_state() -> AppState:
    """
    メモリ上の MoodLog. 最初に使うときに一度だけ読み込む
    DB から読めなかったときはキャッシュせず, 次のリクエストで読み直す
    """
    state = current_app.extensions.get("moodlog")
    if state is None:
        state = load_state(current_app.config["CLOCK"])
        if state.loaded:
            current_app.extensions["moodlog"] = state
    return state


def _render_month(state: AppState, status: int = 200):
    today = current_app.config["CLOCK"]()
    grid = render(state.view, state.mood_log, today)
    return render_template("calendar.html", grid=grid, today=today), status


@bp.route("/")
def index():
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)

    # 指定がなければ今月
    if not year or not month:
        view = ViewMonth.of(current_app.config["CLOCK"]())
    elif 1 <= month <= 12 and 1 <= year <= 9999:
        view = ViewMonth(year, month)
    else:
        abort(404)
    return _render_month(current_state().show(view))


@bp.route("/record", methods=["POST"])
def record():
    color = request.form.get("color", "")
    if color not in COLOR_VALUES:
        abort(400)

    clock = current_app.config["CLOCK"]
    state = current_state().show(ViewMonth.of(clock()))
    try:
        state = record_today(state, color, clock)
    except StoreWriteError:
        # 保存できなかったことは画面に出す. メモリ上の状態は変えない
        flash("色を保存できませんでした. もう一度試してください. ")
        return _render_month(state, 503)

    current_app.extensions["moodlog"] = state
    return redirect(url_for("calendar.index"))


# テストごとに設定 (DB, clock) を変えたアプリを作れるように factory にしている
def create_app(test_config=None) -> Flask:
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///moodlog.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False # 省エネ
    app.config["MOODLOG_TIMEZONE"] = os.getenv("MOODLOG_TIMEZONE", "Asia/Tokyo")
    app.config["MOODLOG_SLOT"] = os.getenv("MOODLOG_SLOT", DEFAULT_SLOT)

    if test_config:
        app.config.update(test_config)

    # 「今日」はここから取る. テストでは固定日付の clock を渡す
    if app.config.get("CLOCK") is None:
        app.config["CLOCK"] = zone_clock(ZoneInfo(app.config["MOODLOG_TIMEZONE"]))

    db.init_app(app)
    migrate.init_app(app, db)
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    # 初回は flask --app app db upgrade でテーブルを作っておく
    create_app().run(debug=True)
