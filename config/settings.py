from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from launch_radar.parsers.exceptions import ConfigurationError

RAYDIUM_AMM_V4 = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
RAYDIUM_AUTHORITY_V4 = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
WSOL_MINT = "So11111111111111111111111111111111111111112"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Helius (Solana RPC + WebSocket)
    helius_api_key: str = ""
    helius_rpc_url: str = ""
    helius_ws_url: str = ""

    # Plain Solana endpoints (fallback if Helius is not configured)
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    solana_ws_url: str = "wss://api.mainnet-beta.solana.com"
    rpc_max_rps: float = 10.0

    # Pool creation signal
    watched_account: str = RAYDIUM_AMM_V4
    lp_owner_address: str = RAYDIUM_AUTHORITY_V4
    quote_mints: list[str] = [WSOL_MINT]
    pool_init_log_marker: str = "initialize2"

    # Rugcheck.xyz
    rugcheck_base_url: str = "https://api.rugcheck.xyz/v1"
    rugcheck_max_rps: float = 2.0
    rug_score_threshold: int = 10000  # raw rugcheck score, higher = more dangerous

    # Distribution / creator analysis
    bundled_threshold_pct: float = 1.0
    top_holders_n: int = 10
    history_window: int = 50

    # Pipeline
    pipeline_timeout_sec: float = 60.0
    max_concurrent_reports: int = 4
    stats_interval_sec: int = 300

    # Persistence: "json" appends to reports_path, "database" writes to database_url
    report_sink: str = "json"
    reports_path: str = "reports.json"
    database_url: str = "sqlite+aiosqlite:///./launch_radar.db"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_dir: str = "logs"

    @property
    def rpc_url(self) -> str:
        if self.helius_rpc_url:
            return self.helius_rpc_url
        if self.helius_api_key:
            return f"https://mainnet.helius-rpc.com/?api-key={self.helius_api_key}"
        return self.solana_rpc_url

    @property
    def ws_url(self) -> str:
        if self.helius_ws_url:
            return self.helius_ws_url
        if self.helius_api_key:
            return f"wss://mainnet.helius-rpc.com/?api-key={self.helius_api_key}"
        return self.solana_ws_url


def validate_settings(cfg: Settings) -> None:
    """Fail fast on addresses or thresholds the monitor cannot work with.

    Raises ConfigurationError with every problem found, not just the first.
    """
    problems: list[str] = []
    addresses = {
        "watched_account": cfg.watched_account,
        "lp_owner_address": cfg.lp_owner_address,
    }
    for i, mint in enumerate(cfg.quote_mints):
        addresses[f"quote_mints[{i}]"] = mint

    for name, value in addresses.items():
        try:
            Pubkey.from_string(value)
        except ValueError:
            problems.append(f"{name} is not a valid address: {value!r}")

    if cfg.rug_score_threshold < 0:
        problems.append("rug_score_threshold must be >= 0")
    if not 0 <= cfg.bundled_threshold_pct <= 100:
        problems.append("bundled_threshold_pct must be within [0, 100]")
    if cfg.top_holders_n <= 0:
        problems.append("top_holders_n must be > 0")
    if cfg.history_window <= 0:
        problems.append("history_window must be > 0")
    if cfg.report_sink not in ("json", "database"):
        problems.append(f"report_sink must be 'json' or 'database', got {cfg.report_sink!r}")

    if problems:
        raise ConfigurationError("; ".join(problems))


settings = Settings()
