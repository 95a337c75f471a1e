#!/usr/bin/env python3
"""RSS ingestion worker.

Runs the category pipeline for every configured category, once or on a
schedule, logging per-category counts. When ``RSS_SNAPSHOT_DIR`` is set each
run also writes ``<dir>/<category>.json`` with the same body ``/api/rss``
serves.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Dict, Optional

import schedule
from dotenv import load_dotenv

from fundspace.config import Settings
from fundspace.pipeline import NewsPipeline, build_pipeline


logger = logging.getLogger("news_ingest_worker")


def write_snapshot(snapshot_dir: str, category: str, payload: Dict) -> Path:
    out_dir = Path(snapshot_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{category}.json"
    tmp = path.with_suffix(".json.tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)
    return path


def run_once(pipeline: Optional[NewsPipeline] = None, settings: Optional[Settings] = None) -> Dict[str, int]:
    """One pass over every category; returns article counts per category."""
    settings = settings or Settings.from_env()
    pipeline = pipeline or build_pipeline(settings)

    counts: Dict[str, int] = {}
    for category in pipeline.categories:
        try:
            articles = pipeline.refresh(category)
        except Exception as e:
            logger.error(f"[ingest] {category} failed: {e}", exc_info=True)
            continue
        counts[category] = len(articles)
        if settings.snapshot_dir:
            try:
                path = write_snapshot(settings.snapshot_dir, category, pipeline.payload(category, articles))
            except OSError as e:
                logger.error(f"[ingest] snapshot for {category} failed: {e}", exc_info=True)
                continue
            logger.info(f"[ingest] wrote {path}")

    logger.info("[ingest] " + " ".join(f"{c}={n}" for c, n in counts.items()))
    return counts


def run_scheduled(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    pipeline = build_pipeline(settings)
    interval = max(1, settings.worker_interval_minutes)

    run_once(pipeline, settings)
    schedule.every(interval).minutes.do(run_once, pipeline, settings)
    while True:
        schedule.run_pending()
        time.sleep(5)


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    mode = (os.environ.get("INGEST_MODE") or "once").lower().strip()
    if mode in ("scheduled", "daemon"):
        run_scheduled()
    else:
        run_once()
