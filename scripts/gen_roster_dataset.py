#!/usr/bin/env python3
"""Synthetic roster generator.

Generates a roster workbook in the layout the ingestion pipeline expects:
- optional leading blank rows
- header row
- data rows: No, Ref, Filiere, Matricule, Nom, Prenom, Section, Groupe
- a fraction of blank / footer rows and rows without matricule

Useful for throughput checks and for trying the CLI by hand.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

HEADER = ["No", "Ref", "Filiere", "Matricule", "Nom", "Prenom", "Section", "Groupe"]
LAST_NAMES = ["Benali", "Haddad", "Mansouri", "Cherif", "Kaci", "Boudiaf", "Saidi", "Amrani"]
FIRST_NAMES = ["Amina", "Yacine", "Sara", "Karim", "Lina", "Nadir", "Ines", "Rayan"]


def generate_roster_rows(
    rows: int,
    sections: int = 3,
    groups_per_section: int = 4,
    blank_ratio: float = 0.02,
    missing_id_ratio: float = 0.01,
    mixed_case: bool = False,
    seed: int = 42,
) -> list[list[Any]]:
    """Generate data rows (header excluded).

    Args:
        rows: number of rows to generate
        sections: number of sections (A, B, C, ...)
        groups_per_section: groups G1..Gn in every section
        blank_ratio: share of fully blank rows
        missing_id_ratio: share of rows without matricule (still grouped)
        mixed_case: spell sections inconsistently ("Section A", "section a", "A")
        seed: random seed for reproducible data
    """
    rng = np.random.default_rng(seed)
    section_idx = rng.integers(0, sections, rows)
    group_idx = rng.integers(1, groups_per_section + 1, rows)
    kinds = rng.random(rows)
    spelling = rng.integers(0, 3, rows)

    data: list[list[Any]] = []
    for i in range(rows):
        if kinds[i] < blank_ratio:
            data.append([None] * len(HEADER))
            continue
        letter = chr(65 + int(section_idx[i]))
        if mixed_case:
            section = [f"Section {letter}", f"section {letter.lower()}", letter][int(spelling[i])]
        else:
            section = f"Section {letter}"
        matricule = None if kinds[i] < blank_ratio + missing_id_ratio else f"{2024000000 + i}"
        data.append([
            i + 1,
            f"R{i:05d}",
            "Informatique",
            matricule,
            LAST_NAMES[int(rng.integers(0, len(LAST_NAMES)))],
            FIRST_NAMES[int(rng.integers(0, len(FIRST_NAMES)))],
            section,
            f"G{int(group_idx[i])}",
        ])
    return data


def create_roster_file(output_path: Path, rows: int, leading_blank_rows: int = 1, **kwargs: Any) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheet_data: list[list[Any]] = [[None] * len(HEADER) for _ in range(leading_blank_rows)]
    sheet_data.append(list(HEADER))
    sheet_data.extend(generate_roster_rows(rows, **kwargs))
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame(sheet_data, dtype=object).to_excel(writer, sheet_name="Liste", header=False, index=False)
    print(f"Created roster: {output_path} ({rows:,} rows)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic roster workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s uploads/roster.xlsx
  %(prog)s big.xlsx --rows 20000 --sections 6 --groups 5 --mixed-case
        """,
    )
    parser.add_argument("output", type=Path, help="Output workbook path")
    parser.add_argument("--rows", type=int, default=500, help="Data rows (default: 500)")
    parser.add_argument("--sections", type=int, default=3, help="Number of sections (default: 3)")
    parser.add_argument("--groups", type=int, default=4, help="Groups per section (default: 4)")
    parser.add_argument("--leading-blank-rows", type=int, default=1, help="Blank rows above the header")
    parser.add_argument("--mixed-case", action="store_true", help="Spell section names inconsistently")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0 or args.sections <= 0 or args.groups <= 0:
        print("Error: --rows, --sections and --groups must be positive", file=sys.stderr)
        return 1
    if args.sections > 26:
        print("Error: at most 26 sections", file=sys.stderr)
        return 1

    create_roster_file(
        args.output,
        args.rows,
        leading_blank_rows=args.leading_blank_rows,
        sections=args.sections,
        groups_per_section=args.groups,
        mixed_case=args.mixed_case,
        seed=args.seed,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
