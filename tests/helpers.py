import os
import shutil
import tempfile
from datetime import date, timedelta

from thai_lotto.db import DrawStore
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import DrawRecord
from thai_lotto.schedule import next_draw_date


class TempDatabase:
    """A fresh sqlite file shared by a DrawStore and a PredictionJournal."""

    def __init__(self):
        self.dir = tempfile.mkdtemp()
        self.path = os.path.join(self.dir, "test.sqlite")
        self.store = DrawStore(self.path)
        self.journal = PredictionJournal(self.path)
        self.store.init_db()
        self.journal.init_db()

    def cleanup(self):
        shutil.rmtree(self.dir, ignore_errors=True)


def draw_dates(n, start=date(2020, 1, 1)):
    """n official draw dates (1st and 16th) starting at `start`."""
    out = [start]
    while len(out) < n:
        out.append(next_draw_date(out[-1]))
    return out


def daily_dates(n, start=date(2023, 1, 2)):
    return [start + timedelta(days=i) for i in range(n)]


def make_draw(d, last3=None, last2="00", last3f="000", last3b="000"):
    first_prize = "000" + (last3 or "000")
    return DrawRecord(draw_date=d, first_prize=first_prize, last3f=last3f, last3b=last3b, last2=last2)


def seed_last3(store, values, dates=None):
    """Store draws whose first_prize_last3 follows `values` in chronological order."""
    dates = dates or draw_dates(len(values))
    for d, v in zip(dates, values):
        store.upsert_draw(make_draw(d, last3=v))
    return dates


def seed_last2(store, values, dates=None):
    dates = dates or draw_dates(len(values))
    for d, v in zip(dates, values):
        store.upsert_draw(make_draw(d, last2=v))
    return dates
