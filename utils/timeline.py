# utils/timeline.py
import pandas as pd

COLUMNS = ["Item", "Start", "Finish", "Status", "Order"]


def _safe_dates(start_d, end_d):
    if not start_d or not end_d:
        return None, None
    s = pd.to_datetime(start_d)
    e = pd.to_datetime(end_d)
    if e <= s:
        e = s + pd.Timedelta(days=1)
    return s, e


def phase_timeline_df(phases) -> pd.DataFrame:
    rows = []
    for ph in sorted(phases or [], key=lambda p: p.get("sequence_order") or 0):
        start, finish = _safe_dates(ph.get("start_date"), ph.get("end_date"))
        if start is None:
            continue
        rows.append({
            "Item": f"{ph.get('sequence_order')}. {ph.get('name')}",
            "Start": start,
            "Finish": finish,
            "Status": ph.get("status") or "pending",
            "Order": ph.get("sequence_order") or 0,
        })
    return pd.DataFrame(rows, columns=COLUMNS)
