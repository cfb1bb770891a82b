"""Environment-driven settings for the relay, CLI and build consumer."""

import os
from dataclasses import dataclass

from plinth.db.engine import DEFAULT_DATABASE_URL

DEFAULT_RELAY_URL = "http://127.0.0.1:3847"
DEFAULT_PORT = 3847
DEFAULT_POLL_INTERVAL_S = 5.0


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    relay_url: str = DEFAULT_RELAY_URL
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    # Empty means any site id is accepted.
    sites: frozenset[str] = frozenset()

    def knows_site(self, site_id: str) -> bool:
        return not self.sites or site_id in self.sites


def _parse_sites(raw: str) -> frozenset[str]:
    return frozenset(s.strip() for s in raw.split(",") if s.strip())


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        relay_url=os.getenv("PLINTH_RELAY_URL", DEFAULT_RELAY_URL).rstrip("/"),
        poll_interval_s=float(os.getenv("PLINTH_POLL_INTERVAL_S", str(DEFAULT_POLL_INTERVAL_S))),
        sites=_parse_sites(os.getenv("PLINTH_SITES", "")),
    )
