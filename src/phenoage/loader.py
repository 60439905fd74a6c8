import json
import math
import pathlib
import re

import pandas as pd
from stairval.notepad import Notepad

from .biomarkers import BIOMARKER_BOUNDS

# Normalized row labels → wire keys
ALIAS_MAP = {
    "c_reactive_protein": "crp",
    "hs_crp": "crp",
    "hscrp": "crp",
    "fasting_glucose": "glucose",
    "lymphocyte": "lymphocytePercent",
    "lymphocyte_percent": "lymphocytePercent",
    "lymphocyte_%": "lymphocytePercent",
    "lymphocytes": "lymphocytePercent",
    "lymph_%": "lymphocytePercent",
    "mean_cell_volume": "meanCellVolume",
    "mean_corpuscular_volume": "meanCellVolume",
    "mcv": "meanCellVolume",
    "red_cell_dist_width": "redCellDistWidth",
    "red_cell_distribution_width": "redCellDistWidth",
    "rdw": "redCellDistWidth",
    "alkaline_phosphatase": "alkalinePhosphatase",
    "alp": "alkalinePhosphatase",
    "white_blood_cell_count": "whiteBloodCellCount",
    "white_blood_cells": "whiteBloodCellCount",
    "wbc": "whiteBloodCellCount",
}

TABLE_SUFFIXES = {".csv", ".xlsx"}
VALUE_COLUMN = "value"


def normalize_label(label) -> str:
    """
    Normalize a biomarker label to snake_case lowercase:
      - drop any "(…)" unit annotation
      - spaces / dashes → underscore
    """
    text = str(label).strip()
    # camelCase wire keys are kept as-is
    if text in {bound.key for bound in BIOMARKER_BOUNDS}:
        return text
    text = re.sub(r"\s*\(.*?\)", "", text).strip()
    return re.sub(r"[\s\-]+", "_", text).lower()


def resolve_key(label) -> str | None:
    """Map a raw label to a wire key, or None if it is not a PhenoAge biomarker."""
    normalized = normalize_label(label)
    for bound in BIOMARKER_BOUNDS:
        if normalized in (bound.key, bound.attribute):
            return bound.key
    return ALIAS_MAP.get(normalized)


def _read_pairs(path: pathlib.Path) -> list[tuple[str, object]]:
    # (label, raw value) pairs in file order
    suffix = path.suffix.lower()
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if isinstance(data, dict) and isinstance(data.get("biomarkers"), dict):
            data = data["biomarkers"]
        if not isinstance(data, dict):
            raise ValueError(f"{path.name}: expected a JSON object of biomarker values")
        return list(data.items())

    if suffix == ".csv":
        df = pd.read_csv(path, index_col=0)
    else:
        df = pd.read_excel(path, sheet_name=0, header=0, index_col=0, engine="openpyxl")
    df.columns = df.columns.astype(str).str.strip().str.lower()
    if VALUE_COLUMN not in df.columns:
        raise ValueError(f"{path.name}: missing required column {VALUE_COLUMN!r}")
    return list(df[VALUE_COLUMN].items())


def _to_float(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def load_biomarker_panel(panel_path: str | pathlib.Path, notepad: Notepad) -> dict[str, float]:
    """
    Read one patient's biomarker panel from a .json, .csv or .xlsx file.

    Tables need the biomarker name in the first column and a `value` column.
    Unknown labels are reported as warnings; blank, non-numeric and duplicate
    values as errors. Returns wire key → value for every usable entry.
    Range checks are left to the validator.
    """
    path = pathlib.Path(panel_path)
    if path.suffix.lower() not in TABLE_SUFFIXES | {".json"}:
        notepad.add_error(f"Unsupported panel file type: {path.suffix!r}")
        return {}

    panel: dict[str, float] = {}
    for label, raw_value in _read_pairs(path):
        key = resolve_key(label)
        if key is None:
            notepad.add_warning(f"{path.name}: ignoring unknown biomarker {label!r}")
            continue
        if key in panel:
            notepad.add_error(f"{path.name}: duplicate value for {key!r} (from {label!r})")
            continue
        value = _to_float(raw_value)
        if value is None:
            notepad.add_error(f"{path.name}: {key!r} is not a number: {raw_value!r}")
            continue
        panel[key] = value
    return panel
