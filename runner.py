#!/usr/bin/env python3
"""
Simple menu to pick and run a flight report.

Prompts for a report and a row limit, then runs flight_reports.py with them.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional

from report_catalog import LIVE_REPORTS, REPORTS, report_names
from report_config import DEFAULT_LIMIT, MAX_LIMIT, MIN_LIMIT

ROOT = Path(__file__).resolve().parent


def prompt_choice(names: List[str], read: Callable[[str], str] = input) -> Optional[str]:
    print("Which report would you like to run?")
    for number, name in enumerate(names, start=1):
        print(f"{number:>2}) {name}")
    print(" 0) Exit")
    choice = read(f"Enter number (0-{len(names)}): ").strip()
    if choice == "0":
        return None
    if choice.isdigit() and 1 <= int(choice) <= len(names):
        return names[int(choice) - 1]
    print("Invalid choice. Please try again.")
    return ""


def prompt_limit(read: Callable[[str], str] = input, default: int = DEFAULT_LIMIT) -> int:
    while True:
        answer = read(f"Limit [{default}] ({MIN_LIMIT}-{MAX_LIMIT}): ").strip()
        if not answer:
            return default
        if answer.isdigit() and MIN_LIMIT <= int(answer) <= MAX_LIMIT:
            return int(answer)
        print(f"Please enter a number between {MIN_LIMIT} and {MAX_LIMIT}.")


def prompt_required(name: str, read: Callable[[str], str] = input) -> List[str]:
    _, required = REPORTS.get(name) or LIVE_REPORTS[name]
    args: List[str] = []
    for option in required:
        value = ""
        while not value:
            value = read(f"{option.replace('_', ' ').title()}: ").strip().upper()
        args += [f"--{option.replace('_', '-')}", value]
    return args


def run_cmd(cmd: list[str]) -> None:
    print(f"\nRunning: {' '.join(cmd)}\n")
    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as exc:
        print(f"Command failed with exit code {exc.returncode}.")


def main() -> None:
    names = report_names()
    while True:
        name = prompt_choice(names)
        if name is None:
            print("Exiting runner.")
            break
        if not name:
            continue
        cmd = [sys.executable, str(ROOT / "flight_reports.py"), name]
        cmd += prompt_required(name)
        if name in REPORTS:
            cmd += ["--top", str(prompt_limit())]
        run_cmd(cmd)


if __name__ == "__main__":
    main()
