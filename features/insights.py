import pandas as pd

from features.habits import habit_score

FRAME_COLUMNS = ["position", "name", "done", "id"]


def habits_frame(habits) -> pd.DataFrame:
    # one row per habit, in display order
    rows = [
        {"position": i, "name": h.name, "done": h.is_completed, "id": str(h.id)}
        for i, h in enumerate(habits)
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def day_summary(habits):
    d = habits_frame(habits)
    total = len(d)
    done = int(d["done"].sum()) if total else 0
    return {
        "total": total,
        "done": done,
        "remaining": total - done,
        "score": habit_score(dict(zip(d["position"], d["done"]))),
    }
