#!/usr/bin/env python3
"""Simple sanity checker for HBMusic deployments.

Reads environment variables from the current shell and optional .env file,
then reports missing required keys, notable optional ones and invalid values.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Dict, List, Tuple

REQUIRED_KEYS: Tuple[str, ...] = (
    "BASE_URL",
)

OPTIONAL_KEYS: Tuple[str, ...] = (
    "TUNEHUB_API_KEY",
    "TUNEHUB_BASE",
    "FALLBACK_BASE",
    "SOURCE_PRIORITY",
    "BITRATE",
    "MAX_RETRIES",
    "FORCE_FALLBACK",
    "UA_FILTER",
)

VALID_BITRATES: Tuple[str, ...] = ("128k", "320k", "flac")
VALID_SOURCES: Tuple[str, ...] = ("kuwo", "netease", "qq")

ENV_FILE = Path.cwd() / ".env"


def load_env_file(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    values: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip().strip("'\"")
    return values


def find_invalid(values: Dict[str, str]) -> List[str]:
    problems: List[str] = []
    bitrate = values.get("BITRATE", "").strip().lower()
    if bitrate and bitrate not in VALID_BITRATES:
        problems.append(f"BITRATE={bitrate} (可选: {', '.join(VALID_BITRATES)})")

    sources = [s.strip().lower() for s in values.get("SOURCE_PRIORITY", "").split(",") if s.strip()]
    unknown = [s for s in sources if s not in VALID_SOURCES]
    if unknown:
        problems.append(f"SOURCE_PRIORITY 含未知音源: {', '.join(unknown)}")

    retries = values.get("MAX_RETRIES", "").strip()
    if retries and not retries.isdigit():
        problems.append(f"MAX_RETRIES={retries} 不是非负整数")
    return problems


def main(environ: Dict[str, str] | None = None, env_file: Path = ENV_FILE) -> int:
    combined = load_env_file(env_file)
    combined.update(os.environ if environ is None else environ)

    missing = [key for key in REQUIRED_KEYS if not combined.get(key)]
    optional_missing = [key for key in OPTIONAL_KEYS if not combined.get(key)]
    invalid = find_invalid(combined)

    if missing:
        print("[ERROR] 缺少必填环境变量:\n  - " + "\n  - ".join(missing))
    else:
        print("[OK] 所有必填环境变量均已提供。")

    if invalid:
        print("[ERROR] 以下配置值无效:\n  - " + "\n  - ".join(invalid))

    if optional_missing:
        print("[INFO] 以下可选项未设置，将使用默认值:\n  - " + "\n  - ".join(optional_missing))
    else:
        print("[OK] 可选项也已全部设置。")

    if missing:
        example = "\n".join(f"{key}=..." for key in missing)
        print("\n可以在 .env 中补充，如:\n" + example)

    return 1 if missing or invalid else 0


if __name__ == "__main__":
    sys.exit(main())
