import os
import json
import logging
import argparse
import pandas as pd

from datetime import datetime
from typing import Any, Dict

from adaptive_cat.config import load_cat_config, load_config
from adaptive_cat.components.item_bank import load_item_bank_from_config
from adaptive_cat.simulation.common import load_results_config, load_simulation_config
from adaptive_cat.simulation.validation import format_report, run_validation

def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Monte Carlo validation of the adaptive questionnaire")
    p.add_argument("--config", type=str, required=True, help="Path to the config file")
    p.add_argument("--n", type=int, default=None, help="Override simulation.n_examinees")
    p.add_argument("--seed", type=int, default=None, help="Override simulation.random_seed")
    p.add_argument("--workers", type=int, default=None, help="Override simulation.n_workers")
    return p.parse_args()

def run_validation_study(cfg: Dict[str, Any], n=None, seed=None, workers=None) -> pd.DataFrame:
    """
    Run the validation study described by cfg and save the report.
    Parameters:
    -----------
        cfg: Dict[str, Any]
            configuration dictionary (item_bank, cat, simulation, results)
    Returns:
    -------
        conditional_df: pd.DataFrame
            conditional recovery table
    """
    bank = load_item_bank_from_config(cfg)
    cat_cfg = load_cat_config(cfg)
    sim_cfg = load_simulation_config(cfg)
    res_cfg = load_results_config(cfg)

    n_examinees = n if n is not None else sim_cfg.n_examinees
    random_seed = seed if seed is not None else sim_cfg.random_seed
    n_workers = workers if workers is not None else sim_cfg.n_workers

    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = f"_{res_cfg.filename_suffix}" if res_cfg.filename_suffix else ""
    sem_str = str(cat_cfg.min_sem).replace(".", "p")

    print("=== CAT Validation Started ===")
    print(f"item bank: {len(bank)} items ({len(bank.reverse_keyed_ids)} reverse-keyed)")
    print(f"method: {cat_cfg.estimation_method.value}, items: {cat_cfg.min_items}-{cat_cfg.max_items}, "
          f"min_sem: {cat_cfg.min_sem}, top_k: {cat_cfg.exposure_control.top_k}")
    print(f"examinees: {n_examinees}, seed: {random_seed}, workers: {n_workers}")

    report = run_validation(
        bank,
        cat_cfg,
        n_examinees=n_examinees,
        seed=random_seed,
        n_workers=n_workers,
    )

    print()
    print(format_report(report))

    conditional_df = report.conditional_frame()

    if res_cfg.save_csv:
        subdir = res_cfg.output_dir
        if res_cfg.timestamped:
            subdir = os.path.join(subdir, run_id)
        os.makedirs(subdir, exist_ok=True)

        base = f"{cat_cfg.estimation_method.value.lower()}_sem{sem_str}_n{n_examinees}{suffix}"

        overall_df = pd.DataFrame([{
            "method": cat_cfg.estimation_method.value,
            "min_items": cat_cfg.min_items,
            "max_items": cat_cfg.max_items,
            "min_sem": cat_cfg.min_sem,
            "top_k": cat_cfg.exposure_control.top_k if cat_cfg.exposure_control.enabled else 1,
            "seed": random_seed,
            **report.overall,
        }])
        overall_path = os.path.join(subdir, f"overall_{base}.csv")
        overall_df.to_csv(overall_path, index=False)
        print(f"\nSaved overall results to: {overall_path}")

        conditional_path = os.path.join(subdir, f"conditional_{base}.csv")
        conditional_df.to_csv(conditional_path, index=False)
        print(f"Saved conditional results to: {conditional_path}")

        report_path = os.path.join(subdir, f"report_{base}.json")
        with open(report_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2)
        print(f"Saved report to: {report_path}")

        if res_cfg.save_runs:
            runs_path = os.path.join(subdir, f"runs_{base}.csv")
            report.runs_frame().to_csv(runs_path, index=False)
            print(f"Saved per-examinee runs to: {runs_path}")

    print("=== CAT Validation Completed ===")
    return conditional_df


if __name__ == "__main__":
    args = parse_args()
    cfg = load_config(args.config)
    level = str((cfg.get("logging", {}) or {}).get("level", "INFO")).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_validation_study(cfg, n=args.n, seed=args.seed, workers=args.workers)
