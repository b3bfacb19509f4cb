#!/usr/bin/env python3
import argparse
import glob
import os
from datetime import date
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from algo_review import scheduler
from algo_review.db import ProblemStore, build_engine
from algo_review.models import Problem

# --- Configuration ---
LOG_DIR = '.'  # Directory where the simulation CSV logs are located
FILE_PATTERN = 'simulation_log_*.csv'
ESSENTIAL_COLUMNS = ['day', 'learner_profile', 'toggle_mode', 'due_reviews', 'completed']

# --- Utility Functions ---

def completions_frame(problems: List[Problem]) -> pd.DataFrame:
    """Completed reviews per date, one row per date."""
    series = scheduler.completion_series(problems)
    df = pd.DataFrame(series, columns=['date', 'count'])
    df['date'] = pd.to_datetime(df['date'])
    return df


def heatmap_grid(problems: List[Problem], year: int, month: int) -> np.ndarray:
    """Pending review counts laid out as calendar weeks (Sunday first)."""
    cells = scheduler.review_heatmap(problems, year, month)
    first, _ = scheduler.month_bounds(year, month)
    lead = (first.weekday() + 1) % 7  # blank days before the 1st
    weeks = (lead + len(cells) + 6) // 7

    grid = np.full(weeks * 7, np.nan)
    grid[lead:lead + len(cells)] = [cell['count'] for cell in cells]
    return grid.reshape(weeks, 7)


def plot_completions(problems: List[Problem], output_dir: str = '.') -> Optional[str]:
    df = completions_frame(problems)
    if df.empty:
        print("No completed reviews to plot.")
        return None

    os.makedirs(output_dir, exist_ok=True)
    plt.figure(figsize=(12, 6))
    plt.bar(df['date'].dt.strftime('%m-%d'), df['count'], color='green')
    plt.title('Completed Reviews per Day', fontsize=14)
    plt.xlabel('Date', fontsize=12)
    plt.ylabel('Reviews Completed', fontsize=12)
    plt.xticks(rotation=45)
    plt.grid(True, alpha=0.3, axis='y')
    plt.tight_layout()
    path = os.path.join(output_dir, 'completions_per_day.png')
    plt.savefig(path)
    plt.close()
    return path


def plot_heatmap(problems: List[Problem], year: int, month: int, output_dir: str = '.') -> str:
    grid = heatmap_grid(problems, year, month)

    os.makedirs(output_dir, exist_ok=True)
    plt.figure(figsize=(8, 6))
    plt.imshow(np.ma.masked_invalid(grid), cmap='YlOrRd', vmin=0, vmax=10)
    plt.colorbar(label='Pending reviews')
    plt.xticks(range(7), ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat'])
    plt.yticks(range(grid.shape[0]), [f'Week {i + 1}' for i in range(grid.shape[0])])
    plt.title(f'Pending Reviews {year}-{month:02d}', fontsize=14)
    plt.tight_layout()
    path = os.path.join(output_dir, f'heatmap_{year}_{month:02d}.png')
    plt.savefig(path)
    plt.close()
    return path


def load_simulation_logs(log_dir: str, file_pattern: str) -> pd.DataFrame:
    all_files = glob.glob(os.path.join(log_dir, file_pattern))
    if not all_files:
        print(f"\nERROR: No files found matching pattern '{file_pattern}' in directory '{log_dir}'")
        return pd.DataFrame()

    print(f"Found {len(all_files)} log files:")
    frames = []
    for filename in sorted(all_files):
        print(f" - {os.path.basename(filename)}")
        df_temp = pd.read_csv(filename)
        if not all(col in df_temp.columns for col in ESSENTIAL_COLUMNS):
            print(f"WARNING: Skipping file {os.path.basename(filename)} - missing essential columns.")
            continue
        frames.append(df_temp)

    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, axis=0, ignore_index=True)


def summarize_simulations(df: pd.DataFrame) -> pd.DataFrame:
    grouped = df.groupby(['learner_profile', 'toggle_mode'])
    summary = grouped[['due_reviews', 'completed']].sum()
    summary['completion_rate'] = summary['completed'] / summary['due_reviews'].replace(0, np.nan)
    summary['final_due_problems'] = grouped['due_problems'].last()
    return summary


def plot_backlog(df: pd.DataFrame, output_dir: str = '.') -> str:
    os.makedirs(output_dir, exist_ok=True)
    plt.figure(figsize=(12, 8))
    for (profile, mode), group in df.groupby(['learner_profile', 'toggle_mode']):
        group = group.sort_values('day')
        plt.plot(group['day'], group['due_problems'], label=f"{profile} - {mode}", linewidth=2)

    plt.title('Problems Due per Day', fontsize=14)
    plt.xlabel('Simulation Day', fontsize=12)
    plt.ylabel('Problems Due', fontsize=12)
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.tight_layout()
    path = os.path.join(output_dir, 'due_problems_over_time.png')
    plt.savefig(path)
    plt.close()
    return path


def analyze_and_print_results(log_dir: str, file_pattern: str, output_dir: str = '.'):
    print("--- Starting Simulation Analysis ---")
    df = load_simulation_logs(log_dir, file_pattern)
    if df.empty:
        print("\nERROR: No data loaded successfully. Exiting.")
        return

    print("\n" + "=" * 50)
    print("       REVIEW COMPLETION SUMMARY")
    print("=" * 50 + "\n")
    summary = summarize_simulations(df)
    print(summary.to_string(formatters={'completion_rate': '{:.1%}'.format}, na_rep='N/A'))
    print(f"\nPlot saved to {plot_backlog(df, output_dir)}")


def report_database(database_url: str, output_dir: str = '.', today: Optional[date] = None):
    today = today or date.today()
    problems = ProblemStore(build_engine(database_url)).list_all()
    print(f"Loaded {len(problems)} problems from {database_url}")
    print(f"Due today: {len(scheduler.due_today(problems, today))}")

    path = plot_completions(problems, output_dir)
    if path:
        print(f"Plot saved to {path}")
    print(f"Plot saved to {plot_heatmap(problems, today.year, today.month, output_dir)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Review tracker reports")
    parser.add_argument("--database-url", help="Plot completions and the heat map from this database")
    parser.add_argument("--log-dir", default=LOG_DIR)
    parser.add_argument("--pattern", default=FILE_PATTERN)
    parser.add_argument("--output-dir", default='.')
    args = parser.parse_args()

    if args.database_url:
        report_database(args.database_url, args.output_dir)
    else:
        analyze_and_print_results(args.log_dir, args.pattern, args.output_dir)
