from __future__ import annotations

import argparse
import logging
import threading
from typing import Optional, Sequence

from prometheus_client import REGISTRY, start_http_server

from onboard_exporter.aggregators import DESCRIPTIONS
from onboard_exporter.config import ExporterConfig, add_arguments, load_config
from onboard_exporter.errors import ConfigError
from onboard_exporter.factory import PipelineFactory
from onboard_exporter.metrics import FetchStatsCollector
from onboard_exporter.scheduler import HEALTH_DESCRIPTIONS, RefreshScheduler
from onboard_exporter.sink import PrometheusSink

logger = logging.getLogger("onboard_exporter")


def build_exporter(config: ExporterConfig, registry=REGISTRY) -> RefreshScheduler:
    """Wire pipelines, scheduler and sink, and register the sink for scraping."""
    stats = FetchStatsCollector()
    sink = PrometheusSink(descriptions={**DESCRIPTIONS, **HEALTH_DESCRIPTIONS})
    pipelines = PipelineFactory(config, stats=stats).create_pipelines()
    scheduler = RefreshScheduler(pipelines, sink, stats=stats, max_workers=config.max_workers)
    sink.on_scrape(scheduler.refresh)
    registry.register(sink)
    return scheduler


def run_exporter(config: ExporterConfig) -> None:
    scheduler = build_exporter(config)
    host, port = config.listen_address
    start_http_server(port, addr=host)
    logger.info("Serving metrics on http://%s:%d/metrics", host, port)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        scheduler.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Prometheus exporter for OnBoard grant and review metrics")
    add_arguments(parser)
    parser.add_argument("--once", action="store_true", help="Run a single refresh cycle, print the report and exit")
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ConfigError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.once:
        scheduler = build_exporter(config)
        try:
            report = scheduler.refresh()
        finally:
            scheduler.close()
        print(f"DONE: succeeded={report.succeeded} failed={report.failed} duration_ms={report.duration_ms}")
        return

    run_exporter(config)


if __name__ == "__main__":
    main()
