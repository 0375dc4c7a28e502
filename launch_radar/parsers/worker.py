"""Monitor worker — wires the event source, pipeline and report sink.

Runs two async tasks:
1. Pool logs WebSocket — logsSubscribe on the watched account
2. Stats reporter — periodic logging of monitor health

Each new-pool signature is resolved and processed in its own task, bounded
by a semaphore. Runs share nothing mutable except the HTTP clients and the
sink, which serializes its own writes.
"""

import asyncio
from collections import OrderedDict

from loguru import logger

from config.settings import Settings, settings
from launch_radar.db.database import init_db, make_engine, make_session_factory
from launch_radar.parsers.exceptions import DataUnavailable
from launch_radar.parsers.persistence import (
    DatabaseReportSink,
    JsonFileReportSink,
    ReportSink,
)
from launch_radar.parsers.pipeline import PipelineConfig, process_transaction
from launch_radar.parsers.raydium.ws_client import PoolCreationEvent, PoolLogsClient
from launch_radar.parsers.rugcheck.client import RugcheckClient
from launch_radar.parsers.solana_rpc.client import SolanaRpcClient

# getTransaction can lag the logs notification by a slot or two
RESOLVE_RETRY_DELAYS = [1.0, 2.0, 4.0]
# Signatures remembered for dedup; the oldest are forgotten first
SEEN_CAPACITY = 10_000


class PoolMonitor:
    """Turns pool-creation events into delivered reports."""

    def __init__(
        self,
        rpc: SolanaRpcClient,
        rugcheck: RugcheckClient,
        sink: ReportSink,
        config: PipelineConfig,
        *,
        max_concurrent: int = 4,
        seen_capacity: int = SEEN_CAPACITY,
    ) -> None:
        self._rpc = rpc
        self._rugcheck = rugcheck
        self._sink = sink
        self._config = config
        self._semaphore = asyncio.Semaphore(max_concurrent)
        # In-run only; restarts may report a signature again
        self._seen: OrderedDict[str, None] = OrderedDict()
        self._seen_capacity = seen_capacity

        self.events_received = 0
        self.reports_delivered = 0
        self.transactions_dropped = 0
        self.delivery_failures = 0

    @property
    def stats(self) -> dict:
        return {
            "events_received": self.events_received,
            "reports_delivered": self.reports_delivered,
            "transactions_dropped": self.transactions_dropped,
            "delivery_failures": self.delivery_failures,
        }

    async def on_new_pool(self, event: PoolCreationEvent) -> None:
        self.events_received += 1
        if not self._mark_seen(event.signature):
            return
        async with self._semaphore:
            await self.handle_signature(event.signature)

    def _mark_seen(self, signature: str) -> bool:
        """Remember signature; False if it was already seen."""
        if signature in self._seen:
            return False
        self._seen[signature] = None
        if len(self._seen) > self._seen_capacity:
            self._seen.popitem(last=False)
        return True

    async def _resolve(self, signature: str):
        for attempt, delay in enumerate([0.0, *RESOLVE_RETRY_DELAYS]):
            if delay:
                await asyncio.sleep(delay)
            try:
                tx = await self._rpc.get_transaction(signature)
            except DataUnavailable as e:
                logger.warning(f"[MONITOR] Resolve failed for {signature[:16]}: {e}")
                return None
            if tx is not None:
                return tx
            logger.debug(f"[MONITOR] {signature[:16]} not visible yet (attempt {attempt + 1})")
        return None

    async def handle_signature(self, signature: str) -> bool:
        """Resolve, process and deliver one signature. True if a report was stored."""
        tx = await self._resolve(signature)
        report = await process_transaction(
            signature, tx, self._config, rpc=self._rpc, rugcheck=self._rugcheck
        )
        if report is None:
            self.transactions_dropped += 1
            return False

        if await self._sink.append(report):
            self.reports_delivered += 1
            return True
        self.delivery_failures += 1
        return False


async def _stats_loop(monitor: PoolMonitor, pools: PoolLogsClient, interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        idle = pools.seconds_since_last_event()
        idle_str = "never" if idle is None else f"{idle:.0f}s ago"
        logger.info(
            f"[STATS] ws={pools.state.value} msgs={pools.message_count} "
            f"reconnects={pools.reconnects} last_pool={idle_str} {monitor.stats}"
        )


async def build_sink(cfg: Settings) -> ReportSink:
    if cfg.report_sink == "database":
        engine = make_engine(cfg.database_url)
        await init_db(engine)
        logger.info("[MONITOR] Reports go to database")
        return DatabaseReportSink(make_session_factory(engine), engine)
    logger.info(f"[MONITOR] Reports go to {cfg.reports_path}")
    return JsonFileReportSink(cfg.reports_path)


async def run_monitor(cfg: Settings = settings, stop: asyncio.Event | None = None) -> None:
    """Listen for new pools until `stop` is set (or the task is cancelled).

    On stop, the socket is closed first and in-flight reports are allowed to
    finish before the HTTP clients go away.
    """
    if stop is None:
        stop = asyncio.Event()
    rpc = SolanaRpcClient(cfg.rpc_url, max_rps=cfg.rpc_max_rps)
    rugcheck = RugcheckClient(cfg.rugcheck_base_url, max_rps=cfg.rugcheck_max_rps)
    sink = await build_sink(cfg)

    monitor = PoolMonitor(
        rpc,
        rugcheck,
        sink,
        PipelineConfig.from_settings(cfg),
        max_concurrent=cfg.max_concurrent_reports,
    )
    pools = PoolLogsClient(cfg.ws_url, cfg.watched_account, cfg.pool_init_log_marker)
    pools.on_new_pool = monitor.on_new_pool

    listener = asyncio.create_task(pools.connect())
    stats = asyncio.create_task(_stats_loop(monitor, pools, cfg.stats_interval_sec))
    stopper = asyncio.create_task(stop.wait())
    logger.info(f"[MONITOR] Watching {cfg.watched_account} for '{cfg.pool_init_log_marker}'")
    try:
        await asyncio.wait([listener, stopper], return_when=asyncio.FIRST_COMPLETED)
        if listener.done() and (error := listener.exception()) is not None:
            raise error
    finally:
        stats.cancel()
        stopper.cancel()
        await pools.stop()
        listener.cancel()
        await rpc.close()
        await rugcheck.close()
        await sink.close()
        logger.info(f"[MONITOR] Stopped: {monitor.stats}")
