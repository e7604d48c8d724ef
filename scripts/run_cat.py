import os
import logging
import argparse
import pandas as pd

from typing import Any, Dict, Optional

from adaptive_cat.config import load_cat_config, load_config
from adaptive_cat.components.item_bank import load_item_bank_from_config
from adaptive_cat.components.scoring import session_log_record, summarize_session
from adaptive_cat.components.session import CATSession
from adaptive_cat.errors import InputError

LIKERT_LABELS = {
    1: "Strongly disagree",
    2: "Disagree",
    3: "Neutral",
    4: "Agree",
    5: "Strongly agree",
}

def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Administer the adaptive questionnaire in the terminal")
    p.add_argument("--config", type=str, required=True, help="Path to the config file")
    p.add_argument("--seed", type=int, default=None, help="Seed for the session random stream")
    return p.parse_args()

def append_session_log(log_path: str, record: Dict[str, Any]) -> None:
    """
    Append one session row to the CSV log, writing the header only for a new file.
    """
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    write_header = not os.path.exists(log_path)
    pd.DataFrame([record]).to_csv(log_path, mode="a", header=write_header, index=False)

def run_interactive(cfg: Dict[str, Any], seed: Optional[int] = None) -> Dict[str, Any]:
    bank = load_item_bank_from_config(cfg)
    cat_cfg = load_cat_config(cfg)
    session = CATSession(bank, cat_cfg, seed=seed)

    print("=== Adaptive Questionnaire ===")
    print("Answer each statement from 1 (strongly disagree) to 5 (strongly agree).\n")

    item = session.next_item()
    while item is not None:
        print(f"[{len(session.history) + 1}] {item.display_text or f'Item {item.item_id}'}")
        for value in range(1, item.category_count + 1):
            print(f"   {value}: {LIKERT_LABELS.get(value, value)}")
        answer = input("> ").strip()
        try:
            session.submit_response(item.item_id, int(answer))
        except ValueError as e:
            # InputError is a ValueError; int() failures land here too
            msg = str(e) if isinstance(e, InputError) else f"not a number: {answer!r}"
            print(f"REQUIRED: {msg}\n")
            continue
        item = session.next_item()

    result = session.result()
    summary = summarize_session(result, bank)

    print("\n=== Assessment Report ===")
    print(f"theta: {summary['theta']:.2f}  (SEM {summary['sem']:.2f}, reliability {summary['reliability']:.2f}, "
          f"{summary['precision']} accuracy)")
    print(f"standardized score: {summary['t_score']}  percentile: {summary['percentile']}%")
    print(f"level: {summary['level']}")
    print(f"items answered: {summary['items_answered']} ({summary['status']})")
    for dim, mean in summary["dimensions"].items():
        print(f"  {dim.replace('_', ' ')}: {mean:.1f}")

    log_path = (cfg.get("session_log", {}) or {}).get("path")
    if log_path:
        append_session_log(log_path, session_log_record(result))
        print(f"\nSaved session log to: {log_path}")
    return summary


if __name__ == "__main__":
    args = parse_args()
    cfg = load_config(args.config)
    level = str((cfg.get("logging", {}) or {}).get("level", "WARNING")).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_interactive(cfg, seed=args.seed)
