"""OnBoard metrics exporter package.

Fetches paginated data from the HCB, GitHub and Airtable APIs on every
Prometheus scrape and folds it into gauges.

Key modules:
    models          -- PagedRequest, Page, record and snapshot dataclasses
    errors          -- FetchFailure hierarchy and AuthAbsent
    config          -- per-source configuration and CLI options
    client          -- HttpClient wrapping a requests session per source
    rate_limiter    -- RateLimiter throttle and GitHub rate limit warnings
    base            -- SourceAdapter abstract class
    sources         -- concrete adapters for each API
    paginator       -- Paginator driving an adapter page by page
    aggregators     -- counts, averages and label tallies
    pipeline        -- SourcePipeline per source
    projects        -- ProjectDirectoryCounter for the projects folder
    factory         -- PipelineFactory building pipelines from config
    scheduler       -- RefreshScheduler running one cycle per scrape
    sink            -- MetricSink and PrometheusSink
    metrics         -- FetchStatsCollector for the exporter's own health
"""
